"""
Main entry point for Port Discovery.

This module provides the command-line interface for the port discovery tool,
including argument parsing, configuration loading and graceful shutdown
handling.
"""

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config.config_loader import ConfigLoader, ProbeConfig
from .core.data_models import ScanStatus
from .core.scan_orchestrator import ScanOrchestrator
from .utils.error_handler import (
    ConfigurationError,
    ErrorContext,
    ErrorHandler,
    ErrorSeverity,
    PortDiscoveryError,
    ResourceExhaustedError,
    SystemResourceError,
    ValidationError,
    error_type_for,
)
from .utils.logger import LogLevel, get_logger, set_log_level
from .utils.text_reporter import TextReporter

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_CANCELLED = 130  # Standard exit code for SIGINT


class PortDiscoveryApp:
    """
    Main application class for Port Discovery.

    Handles the CLI commands, signal-driven cancellation and exit codes.
    """

    def __init__(self, reporter: Optional[TextReporter] = None):
        """Initialize the application."""
        self.logger = get_logger(__name__)
        self.error_handler = ErrorHandler(self.logger)
        self.reporter = reporter or TextReporter()
        self.orchestrator: Optional[ScanOrchestrator] = None
        self.shutdown_requested = False
        self._command = "scan"
        self._previous_handlers = {}

    def _signal_handler(self, signum: int, frame) -> None:
        """
        Handle shutdown signals gracefully.

        The first signal cancels the scan in progress; a second one
        terminates immediately.

        Args:
            signum: Signal number
            frame: Current stack frame
        """
        signal_names = {signal.SIGINT: "SIGINT", signal.SIGTERM: "SIGTERM"}
        signal_name = signal_names.get(signum, f"Signal {signum}")

        if not self.shutdown_requested:
            self.logger.warning(f"Received {signal_name} - cancelling scan...")
            self.shutdown_requested = True
            if self.orchestrator is not None:
                self.orchestrator.cancel()
        else:
            self.logger.error("Force shutdown requested - terminating immediately")
            sys.exit(EXIT_FAILURE)

    def _install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        for signum in (signal.SIGINT, signal.SIGTERM):
            self._previous_handlers[signum] = signal.signal(signum, self._signal_handler)

    def _restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers = {}

    def _load_config(self, args: argparse.Namespace) -> ProbeConfig:
        """
        Load the probe configuration and apply command-line overrides.

        Args:
            args: Parsed command line arguments

        Returns:
            ProbeConfig: Validated configuration

        Raises:
            ConfigurationError: If the config directory or an override is invalid
        """
        config_dir = args.config_dir
        if config_dir:
            config_path = Path(config_dir)
            if not config_path.is_dir():
                raise ConfigurationError(f"Configuration directory does not exist: {config_dir}")
            config_dir = str(config_path.resolve())

        loader = ConfigLoader(config_dir, logger=self.logger)
        config = loader.load_probe_config()
        return config.with_overrides(timeout=args.timeout, concurrency=args.concurrency)

    def _report_error(self, error: Exception) -> None:
        context = ErrorContext(
            error_type=error_type_for(error),
            severity=ErrorSeverity.HIGH,
            operation=self._command,
            component="PortDiscoveryApp",
        )
        self.error_handler.handle_error(error, context)

    def run(self, args: argparse.Namespace) -> int:
        """
        Run the requested command.

        Args:
            args: Parsed command line arguments

        Returns:
            int: Exit code (0 for success, non-zero for failure)
        """
        self._command = args.command or "discover"
        self._install_signal_handlers()
        try:
            config = self._load_config(args)
            self.orchestrator = ScanOrchestrator(config, logger=self.logger)

            if self.shutdown_requested:
                self.logger.info("Shutdown requested before scan start")
                return EXIT_CANCELLED

            if self._command == "networks":
                records = self.orchestrator.run_networks(include_down=args.all)
                self.reporter.print_interfaces(records)
                return EXIT_OK

            if self._command == "probe":
                report = self.orchestrator.run_probe(
                    args.target, args.start_port, args.end_port,
                    include_empty_hosts=args.all_hosts,
                )
            else:
                report = self.orchestrator.run_discovery()

            self.reporter.print_report(report)
            if report.scan_status == ScanStatus.CANCELLED:
                return EXIT_CANCELLED
            return EXIT_OK

        except ValidationError as e:
            self._report_error(e)
            return EXIT_USAGE
        except ResourceExhaustedError as e:
            if e.report is not None:
                self.reporter.print_report(e.report)
            self._report_error(e)
            return EXIT_FAILURE
        except SystemResourceError as e:
            self._report_error(e)
            return EXIT_FAILURE
        except PortDiscoveryError as e:
            self.logger.error(f"Port discovery failed: {str(e)}", exception=e)
            return EXIT_FAILURE
        except KeyboardInterrupt:
            self.logger.warning("Scan interrupted by user")
            return EXIT_CANCELLED
        finally:
            self._restore_signal_handlers()


def _add_common_arguments(parser: argparse.ArgumentParser, suppress_defaults: bool = False) -> None:
    # Subcommands leave unset options alone so values given before the
    # subcommand name survive
    default = argparse.SUPPRESS if suppress_defaults else None
    flag_default = argparse.SUPPRESS if suppress_defaults else False
    parser.add_argument(
        "--config-dir",
        type=str,
        default=default,
        help="Directory containing probe_config.yml. Defaults to port_discovery/config/"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=default,
        help="Per-attempt connect timeout in seconds (default: from config, 0.5)"
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=default,
        help="Number of parallel probe workers (default: derived from CPU count)"
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--verbose", "-v",
        action="store_true",
        default=flag_default,
        help="Enable verbose logging output"
    )
    verbosity.add_argument(
        "--quiet", "-q",
        action="store_true",
        default=flag_default,
        help="Only log warnings and errors"
    )


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command line argument parser.

    Returns:
        argparse.ArgumentParser: Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="port-discovery",
        description="Port Discovery - find reachable hosts and open TCP ports on a local network",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  port-discovery probe 192.168.1.10            # Scan ports 1-1024 on one host
  port-discovery probe 192.168.1.0/24 22 443   # Scan ports 22-443 on a /24
  port-discovery networks                      # List local interfaces and subnets
  port-discovery discover                      # Find live hosts on local subnets
  port-discovery probe 10.0.0.5 1 100 --concurrency 50 --timeout 0.3
        """
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Port Discovery {__version__}"
    )

    _add_common_arguments(parser)

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    # After add_subparsers, so the default lands on the subparsers action
    parser.set_defaults(command="discover")

    probe = subparsers.add_parser(
        "probe", help="Scan a port range on an IPv4 address or CIDR block"
    )
    probe.add_argument("target", help="IPv4 address (10.0.0.5) or CIDR block (10.0.0.0/24)")
    probe.add_argument("start_port", nargs="?", default="1", help="First port (default: 1)")
    probe.add_argument("end_port", nargs="?", default="1024", help="Last port (default: 1024)")
    probe.add_argument(
        "--all-hosts",
        action="store_true",
        help="Also list hosts with no open ports"
    )
    _add_common_arguments(probe, suppress_defaults=True)

    networks = subparsers.add_parser(
        "networks", help="List local network interfaces and their subnets"
    )
    networks.add_argument(
        "--all",
        action="store_true",
        help="Include interfaces that are down"
    )
    _add_common_arguments(networks, suppress_defaults=True)

    discover = subparsers.add_parser(
        "discover", help="Find live hosts on local subnets using common ports"
    )
    _add_common_arguments(discover, suppress_defaults=True)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for Port Discovery.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        set_log_level(LogLevel.DEBUG)
    elif args.quiet:
        set_log_level(LogLevel.WARNING)
    else:
        set_log_level(LogLevel.INFO)

    app = PortDiscoveryApp()
    return app.run(args)


if __name__ == "__main__":
    sys.exit(main())
