"""
Probe Executor for Port Discovery.

This module runs bounded-parallel TCP connect attempts. A dispatcher thread
feeds candidates into a bounded work queue; a fixed pool of worker threads
drains it, each performing one blocking connect with a timeout, and pushes a
classified outcome onto the outcome queue. The caller's thread consumes that
queue through the generator returned by ProbeExecutor.run().

Besides the two queues, workers share only a lock-guarded count of
consecutive socket-exhaustion failures; reaching the limit halts dispatch.
Cancellation is a threading.Event checked between attempts, so an in-flight
attempt ends within one timeout period.
"""

import errno
import queue
import socket
import threading
import time
from typing import Callable, Iterable, Iterator, List, Optional

from .data_models import Candidate, ProbeOutcome, ProbeStatus
from ..config.config_loader import ProbeConfig, validate_probe_config
from ..utils.error_handler import ResourceExhaustedError, ValidationError
from ..utils.logger import Logger, get_logger

# connector(host, port, timeout) returns on success and raises OSError otherwise
Connector = Callable[[str, int, float], None]

RESOURCE_ERRNOS = frozenset({errno.EMFILE, errno.ENFILE, errno.ENOBUFS})

QUEUE_POLL_INTERVAL = 0.1

_END_OF_WORK = object()
_WORKER_DONE = object()


class _DispatchFailure:
    """Carries an exception raised while dispatching candidates."""

    def __init__(self, error: Exception):
        self.error = error


class _ExhaustionCounter:
    """Consecutive socket-exhaustion failures, shared by the workers."""

    def __init__(self, limit: int):
        self.limit = limit
        self.count = 0
        self.tripped = False
        self._lock = threading.Lock()

    def record(self, outcome: ProbeOutcome) -> bool:
        """Count one outcome; True once the limit has been reached."""
        with self._lock:
            if is_resource_exhaustion(outcome):
                self.count += 1
            else:
                self.count = 0
            if self.count >= self.limit:
                self.tripped = True
            return self.tripped


def tcp_connect(host: str, port: int, timeout: float) -> None:
    """Open a TCP connection to host:port and close it immediately."""
    with socket.create_connection((host, port), timeout=timeout):
        pass


def is_resource_exhaustion(outcome: ProbeOutcome) -> bool:
    """True when the outcome failed because sockets/descriptors ran out."""
    return outcome.status is ProbeStatus.ERROR and outcome.error_code in RESOURCE_ERRNOS


def _describe_os_error(error: OSError) -> str:
    if error.strerror:
        if error.errno is not None:
            return f"{error.strerror} (errno {error.errno})"
        return error.strerror
    return str(error) or type(error).__name__


class ProbeExecutor:
    """
    Bounded worker pool classifying TCP connect attempts.

    Exactly one outcome is produced for every candidate dispatched. Failures
    of individual attempts become outcomes; only malformed input or socket
    exhaustion ends a run with an exception.
    """

    def __init__(
        self,
        config: ProbeConfig,
        connector: Optional[Connector] = None,
        logger: Optional[Logger] = None,
    ):
        """
        Initialize the executor.

        Args:
            config: Probe configuration (timeout, concurrency, queue size)
            connector: Connect-with-timeout capability; defaults to tcp_connect
            logger: Logger instance for progress and diagnostics

        Raises:
            ConfigurationError: If the concurrency or timeout is invalid
        """
        self.config = validate_probe_config(config)
        self.connector = connector or tcp_connect
        self.logger = logger or get_logger(__name__)

    def probe(self, candidate: Candidate) -> ProbeOutcome:
        """
        Attempt one connection and classify the result.

        Args:
            candidate: Host and port to probe

        Returns:
            ProbeOutcome for the candidate; never raises for network failures
        """
        start = time.perf_counter()
        try:
            self.connector(str(candidate.host), candidate.port, self.config.timeout)
        except ConnectionRefusedError:
            return self._outcome(candidate, ProbeStatus.CLOSED, start)
        except (socket.timeout, TimeoutError):
            return self._outcome(candidate, ProbeStatus.TIMEOUT, start, reason="timed out")
        except OSError as e:
            return self._outcome(candidate, ProbeStatus.ERROR, start,
                                 reason=_describe_os_error(e), error_code=e.errno)
        except Exception as e:
            return self._outcome(candidate, ProbeStatus.ERROR, start,
                                 reason=f"{type(e).__name__}: {e}")
        return self._outcome(candidate, ProbeStatus.OPEN, start)

    def _outcome(self, candidate: Candidate, status: ProbeStatus, start: float,
                 reason: Optional[str] = None, error_code: Optional[int] = None) -> ProbeOutcome:
        return ProbeOutcome(
            candidate=candidate,
            status=status,
            reason=reason,
            error_code=error_code,
            elapsed=round(time.perf_counter() - start, 4),
        )

    def run(
        self,
        candidates: Iterable[Candidate],
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[ProbeOutcome]:
        """
        Probe every candidate and yield outcomes in completion order.

        Args:
            candidates: Candidate sequence; consumed lazily by the dispatcher
            cancel_event: Setting it stops dispatch; in-flight attempts finish

        Yields:
            One ProbeOutcome per dispatched candidate

        Raises:
            ValidationError: If the sequence contains something that is not a Candidate
            ResourceExhaustedError: After max_resource_errors consecutive
                socket-exhaustion failures; dispatch stops at once and the
                outcomes of attempts already made are yielded first
        """
        stop = threading.Event()
        exhaustion = _ExhaustionCounter(self.config.max_resource_errors)

        def halted() -> bool:
            return stop.is_set() or (cancel_event is not None and cancel_event.is_set())

        work_queue: "queue.Queue" = queue.Queue(maxsize=self.config.queue_size)
        outcome_queue: "queue.Queue" = queue.Queue()

        dispatcher = threading.Thread(
            target=self._dispatch,
            args=(candidates, work_queue, outcome_queue, stop, halted),
            name="probe-dispatcher",
            daemon=True,
        )
        workers = [
            threading.Thread(
                target=self._work,
                args=(work_queue, outcome_queue, stop, halted, exhaustion),
                name=f"probe-worker-{index}",
                daemon=True,
            )
            for index in range(self.config.concurrency)
        ]

        self.logger.debug(
            f"Starting {len(workers)} probe workers",
            timeout=self.config.timeout,
            queue_size=self.config.queue_size,
        )
        dispatcher.start()
        for worker in workers:
            worker.start()

        failure: Optional[Exception] = None
        finished = 0

        try:
            # Workers post _WORKER_DONE after their last outcome
            while finished < len(workers):
                try:
                    item = outcome_queue.get(timeout=QUEUE_POLL_INTERVAL)
                except queue.Empty:
                    continue

                if item is _WORKER_DONE:
                    finished += 1
                elif isinstance(item, _DispatchFailure):
                    failure = item.error
                else:
                    yield item
        finally:
            stop.set()
            self._join([dispatcher] + workers)

        if exhaustion.tripped:
            self.logger.warning(
                f"{exhaustion.limit} consecutive socket exhaustion failures - scan stopped"
            )
            raise ResourceExhaustedError(
                f"Socket resources exhausted after {exhaustion.limit} consecutive failures"
            )

        if failure is not None:
            raise failure

    def probe_all(self, candidates: Iterable[Candidate],
                  cancel_event: Optional[threading.Event] = None) -> List[ProbeOutcome]:
        """Run a scan to completion and return the outcomes as a list."""
        return list(self.run(candidates, cancel_event))

    def _dispatch(self, candidates: Iterable[Candidate], work_queue: "queue.Queue",
                  outcome_queue: "queue.Queue", stop: threading.Event,
                  halted: Callable[[], bool]) -> None:
        try:
            for candidate in candidates:
                if not isinstance(candidate, Candidate):
                    raise ValidationError(f"Malformed candidate: {candidate!r}")
                if not self._put(work_queue, candidate, halted):
                    return
        except Exception as e:
            outcome_queue.put(_DispatchFailure(e))
            stop.set()
            return

        for _ in range(self.config.concurrency):
            if not self._put(work_queue, _END_OF_WORK, halted):
                return

    def _put(self, work_queue: "queue.Queue", item: object,
             halted: Callable[[], bool]) -> bool:
        while not halted():
            try:
                work_queue.put(item, timeout=QUEUE_POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False

    def _work(self, work_queue: "queue.Queue", outcome_queue: "queue.Queue",
              stop: threading.Event, halted: Callable[[], bool],
              exhaustion: _ExhaustionCounter) -> None:
        try:
            while not halted():
                try:
                    item = work_queue.get(timeout=QUEUE_POLL_INTERVAL)
                except queue.Empty:
                    continue
                if item is _END_OF_WORK:
                    break
                outcome = self.probe(item)
                outcome_queue.put(outcome)
                if exhaustion.record(outcome):
                    stop.set()
        finally:
            outcome_queue.put(_WORKER_DONE)

    def _join(self, threads: List[threading.Thread]) -> None:
        deadline = time.monotonic() + self.config.timeout + self.config.join_grace
        for thread in threads:
            thread.join(max(0.0, deadline - time.monotonic()))

        stragglers = [thread.name for thread in threads if thread.is_alive()]
        if stragglers:
            self.logger.warning(f"Abandoning {len(stragglers)} probe threads still in flight")
