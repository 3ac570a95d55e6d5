"""
Port Discovery

A Python module for finding reachable hosts and open TCP ports on a local
network using bounded-parallel TCP connect probes.
"""

__version__ = "1.0.0"
__author__ = "Network Discovery Team"
