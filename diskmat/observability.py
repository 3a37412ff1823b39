"""
Observability utilities for diskmat.

This module provides:
- Logging configuration for the `diskmat` logger hierarchy
- A lightweight execution profiler used around mapping and fill operations
"""

import logging
import time
import json
from contextlib import contextmanager
from typing import Optional, Dict, Any, Deque
from dataclasses import dataclass, field
from collections import defaultdict, deque

from .config import PROFILE_HISTORY


# ============================================================================
# Logging Configuration
# ============================================================================

def configure_logging(level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure logging for the diskmat package.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path to write logs
    """
    log_level = getattr(logging, level.upper())

    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    diskmat_logger = logging.getLogger('diskmat')
    diskmat_logger.setLevel(log_level)

    # Calling this twice must not duplicate output
    for handler in list(diskmat_logger.handlers):
        diskmat_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(console_formatter)
    diskmat_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)  # Always log everything to file
        file_handler.setFormatter(detailed_formatter)
        diskmat_logger.addHandler(file_handler)

    diskmat_logger.propagate = False

    return diskmat_logger


# ============================================================================
# Performance Profiling
# ============================================================================

@dataclass
class ProfileEntry:
    """Single profile measurement."""
    name: str
    start_time: float
    end_time: Optional[float] = None
    duration: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def complete(self):
        """Mark this entry as complete and calculate duration."""
        self.end_time = time.perf_counter()
        self.duration = self.end_time - self.start_time

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'duration': self.duration,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'metadata': self.metadata
        }


class ExecutionProfiler:
    """
    Profiler for tracking how long mapping operations take.

    Example:
        profiler = ExecutionProfiler()

        with profiler.profile("diskmat.create", rows=1000, cols=1000):
            ...

        profiler.get_summary()

    Only the most recent `history` entries (and durations per operation) are
    kept, so a long-running process does not accumulate them without bound.
    """

    def __init__(self, history: int = PROFILE_HISTORY):
        self.entries: Deque[ProfileEntry] = deque(maxlen=history)
        self.aggregated: Dict[str, Deque[float]] = defaultdict(lambda: deque(maxlen=history))
        self._enabled = True

    @contextmanager
    def profile(self, name: str, **metadata):
        """
        Context manager for profiling a code block.

        Args:
            name: Name of the operation being profiled
            **metadata: Additional metadata to attach
        """
        if not self._enabled:
            yield None
            return

        entry = ProfileEntry(
            name=name,
            start_time=time.perf_counter(),
            metadata=metadata
        )

        try:
            yield entry
        finally:
            entry.complete()
            self.entries.append(entry)
            self.aggregated[name].append(entry.duration)

    def get_summary(self) -> Dict[str, Dict[str, float]]:
        """
        Get aggregated statistics for all profiled operations.

        Returns:
            Dictionary mapping operation names to statistics
        """
        summary = {}
        for name, durations in self.aggregated.items():
            if durations:
                summary[name] = {
                    'count': len(durations),
                    'total': sum(durations),
                    'mean': sum(durations) / len(durations),
                    'min': min(durations),
                    'max': max(durations)
                }
        return summary

    def save_json(self, filepath: str):
        """Save profiling results to a JSON file."""
        data = {
            'summary': self.get_summary(),
            'entries': [entry.to_dict() for entry in self.entries]
        }

        with open(filepath, 'w') as f:
            json.dump(data, f, indent=2, default=str)

    def reset(self):
        """Clear all profiling data."""
        self.entries.clear()
        self.aggregated.clear()

    def enable(self):
        self._enabled = True

    def disable(self):
        self._enabled = False


# Global profiler instance
_global_profiler = ExecutionProfiler()

def get_profiler() -> ExecutionProfiler:
    """Get the global profiler instance."""
    return _global_profiler
