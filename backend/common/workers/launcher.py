"""
Process entry points for workers and one-shot jobs.
"""

import asyncio
import logging
import signal
import sys
from typing import Any, Awaitable, Callable, Optional

from common.core.telemetry import _initialize_telemetry, get_logger


class WorkerLauncher:
    """Handles telemetry setup, signals and the event loop for a worker process."""

    def __init__(self):
        self.logger = get_logger(__name__)
        self.worker_instance: Optional[Any] = None

    def _signal_handler(self, signum: int, frame: Any) -> None:
        self.logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        if self.worker_instance:
            self.worker_instance.running = False
        sys.exit(0)

    def _register_signal_handlers(self):
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    async def _run_worker_async(self, worker_instance: Any, worker_name: str):
        self.worker_instance = worker_instance
        self._register_signal_handlers()

        try:
            self.logger.info(f"Starting {worker_name}...")
            await worker_instance.start()
        except Exception as e:
            self.logger.error(f"Worker failed with error: {e}", exc_info=True)
            raise
        finally:
            await worker_instance.stop()
            self.logger.info("Worker shutdown complete")

    def run(
        self,
        worker_factory: Callable[..., Any],
        worker_name: str,
        log_level: Optional[str] = None,
        factory_kwargs: Optional[dict] = None,
    ):
        """
        Run a long-lived queue worker until it is stopped.

        Args:
            worker_factory: Callable that creates the worker instance
            worker_name: Human readable name for logging
            log_level: Optional root log level override (e.g. "DEBUG")
            factory_kwargs: Kwargs to pass to worker factory
        """
        _initialize_telemetry()
        if log_level:
            logging.getLogger().setLevel(getattr(logging, log_level))

        self.logger.info(f"Configuring {worker_name}...")
        worker_instance = worker_factory(**(factory_kwargs or {}))

        try:
            asyncio.run(self._run_worker_async(worker_instance, worker_name))
        except KeyboardInterrupt:
            self.logger.info("Keyboard interrupt caught, exiting...")
            sys.exit(0)

    def run_once(
        self,
        job: Callable[[], Awaitable[Any]],
        job_name: str,
        log_level: Optional[str] = None,
    ) -> Any:
        """Run a one-shot async job (e.g. a scheduled scan) and return its result."""
        _initialize_telemetry()
        if log_level:
            logging.getLogger().setLevel(getattr(logging, log_level))

        self.logger.info(f"Running {job_name}...")
        return asyncio.run(job())
