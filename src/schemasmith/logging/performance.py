"""Performance logging for SchemaSmith operations.

This module times statement execution and DDL synthesis and logs the
outcome of each timed block.

Classes:
    TimingMetrics: One timing measurement
    TimingContext: Context manager for operation timing
    PerformanceLogger: Main performance logging interface

Example:
    >>> perf_logger = PerformanceLogger("database.executor")
    >>> with perf_logger.measure("execute", connection_id="connection_1") as timer:
    ...     rows = await dialect.run(conn, sql, params)
    >>> timer.duration_ms
    12.4
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, Optional

from .structured import StructuredLogger


@dataclass
class TimingMetrics:
    """Metrics for a single timing measurement.

    Attributes:
        operation: Operation name
        start_time: perf_counter value at start
        end_time: perf_counter value at end
        duration: Duration in seconds
        metadata: Additional metadata
        success: Whether operation succeeded
        error: Error information if failed
    """

    operation: str
    start_time: float
    end_time: Optional[float] = None
    duration: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    success: bool = True
    error: Optional[str] = None

    def complete(self, success: bool = True, error: Optional[str] = None) -> None:
        """Mark timing as complete."""
        self.end_time = time.perf_counter()
        self.duration = self.end_time - self.start_time
        self.success = success
        self.error = error

    @property
    def duration_ms(self) -> Optional[float]:
        """Duration in milliseconds, or None if not completed."""
        return self.duration * 1000 if self.duration is not None else None

    @property
    def is_complete(self) -> bool:
        return self.end_time is not None


class TimingContext:
    """Context manager for measuring operation timing.

    Example:
        >>> with TimingContext("synthesize_ddl") as timer:
        ...     text = build_ddl()
        >>> print(f"Synthesis took {timer.duration_ms:.2f}ms")
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[StructuredLogger] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.operation = operation
        self.logger = logger
        self.metadata = metadata or {}
        self._timing: Optional[TimingMetrics] = None

    @property
    def timing(self) -> Optional[TimingMetrics]:
        return self._timing

    @property
    def duration_ms(self) -> Optional[float]:
        """Duration in milliseconds, or None if not completed."""
        return self._timing.duration_ms if self._timing else None

    def __enter__(self) -> "TimingContext":
        self._timing = TimingMetrics(
            operation=self.operation,
            start_time=time.perf_counter(),
            metadata=self.metadata,
        )
        if self.logger:
            self.logger.debug("Operation started", operation=self.operation, **self.metadata)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._timing is None:
            return

        success = exc_type is None
        error = str(exc_val) if exc_val else None
        self._timing.complete(success=success, error=error)

        if not self.logger:
            return
        if success:
            self.logger.info(
                "Operation completed",
                operation=self.operation,
                duration_ms=self._timing.duration_ms,
                success=True,
                **self.metadata,
            )
        else:
            self.logger.error(
                "Operation failed",
                operation=self.operation,
                duration_ms=self._timing.duration_ms,
                success=False,
                error=error,
                **self.metadata,
            )


class PerformanceLogger:
    """Performance logger for statement and synthesis timings.

    Attributes:
        name: Logger name
        logger: Underlying structured logger
    """

    def __init__(
        self,
        name: str,
        *,
        auto_log: bool = True,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self.name = name
        self.auto_log = auto_log
        self.logger = logger or StructuredLogger(f"perf.{name}")

    @contextmanager
    def measure(self, operation: str, **metadata: Any) -> Generator[TimingContext, None, None]:
        """Time the wrapped block and log its outcome.

        Args:
            operation: Operation name
            **metadata: Fields attached to the timing log events

        Yields:
            TimingContext for the operation
        """
        timing_context = TimingContext(
            operation=operation,
            logger=self.logger if self.auto_log else None,
            metadata=metadata,
        )
        with timing_context as ctx:
            yield ctx

    def __repr__(self) -> str:
        return f"PerformanceLogger(name={self.name!r}, auto_log={self.auto_log})"
