"""Base classes for SchemaSmith components.

This module provides the lifecycle base classes used by long-lived
components such as the admin service and the health monitor.

Classes:
    BaseComponent: Generic base class holding configuration and metadata
    AsyncComponent: Base class with guarded async initialize/cleanup

Example:
    >>> class HealthMonitor(AsyncComponent[HealthConfig]):
    ...     async def _async_initialize(self) -> None:
    ...         self._task = asyncio.create_task(self._run())
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, TypeVar

import structlog

from .exceptions import ConfigurationError, SchemaSmithException

# Configuration type
T = TypeVar("T")


class BaseComponent(Generic[T], ABC):
    """Base class for all SchemaSmith components.

    Type Parameters:
        T: Type of configuration object this component accepts

    Attributes:
        component_name: Name of the component for logging and identification
    """

    component_name: ClassVar[str] = "BaseComponent"

    def __init__(self, config: T) -> None:
        """Initialize base component.

        Args:
            config: Configuration object for this component

        Raises:
            ConfigurationError: If configuration is missing
        """
        if config is None:
            raise ConfigurationError(
                "Configuration cannot be None",
                code="CONFIG_NULL",
                context={"component": self.component_name},
            )

        self._config: T = config
        self._initialized: bool = False
        self._creation_time: float = time.time()
        self._logger = structlog.get_logger(self.__class__.__name__)

    @property
    def config(self) -> T:
        """Get component configuration."""
        return self._config

    @property
    def is_initialized(self) -> bool:
        """Check if component is initialized."""
        return self._initialized

    @property
    def uptime(self) -> float:
        """Get component uptime in seconds."""
        return time.time() - self._creation_time

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"name={self.component_name!r}, "
            f"initialized={self._initialized}, "
            f"uptime={self.uptime:.2f}s)"
        )


class AsyncComponent(BaseComponent[T]):
    """Base class for async-capable components.

    Initialization and cleanup are each guarded by a lock so concurrent
    callers cannot run them twice.
    """

    def __init__(self, config: T) -> None:
        super().__init__(config)
        self._initialization_lock = asyncio.Lock()
        self._cleanup_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Initialize component asynchronously.

        Raises:
            SchemaSmithException: If initialization fails
        """
        async with self._initialization_lock:
            if self._initialized:
                return

            self._logger.info("Initializing component", component=self.component_name)

            try:
                await self._async_initialize()
            except SchemaSmithException:
                self._logger.error(
                    "Component initialization failed", component=self.component_name
                )
                raise
            except Exception as e:
                self._logger.error(
                    "Component initialization failed",
                    component=self.component_name,
                    error=str(e),
                )
                raise SchemaSmithException(
                    f"Failed to initialize {self.component_name}",
                    code="INIT_FAILED",
                    context={"component": self.component_name},
                    cause=e,
                ) from e

            self._initialized = True
            self._logger.info(
                "Component initialized successfully", component=self.component_name
            )

    async def cleanup(self) -> None:
        """Clean up component resources asynchronously.

        Cleanup errors are logged rather than raised so they cannot mask the
        error that triggered shutdown.
        """
        async with self._cleanup_lock:
            if not self._initialized:
                return

            self._logger.info("Cleaning up component", component=self.component_name)

            try:
                await self._async_cleanup()
            except Exception as e:
                self._logger.error(
                    "Component cleanup failed",
                    component=self.component_name,
                    error=str(e),
                )
            finally:
                self._initialized = False

    @abstractmethod
    async def _async_initialize(self) -> None:
        """Perform async initialization work."""

    async def _async_cleanup(self) -> None:
        """Perform async cleanup work."""

    async def __aenter__(self) -> "AsyncComponent[T]":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.cleanup()
