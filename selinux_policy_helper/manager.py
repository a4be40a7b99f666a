"""Starts and stops a set of controllers."""

import logging
import threading
from typing import List

logger = logging.getLogger(__name__)


class ControllerManager:
    """Runs the controllers it is given until interrupted."""

    def __init__(self, controllers: List):
        """
        Args:
            controllers: Objects with start() and stop() methods
        """
        self.controllers = list(controllers)
        self._stop_event = threading.Event()

    def start(self) -> None:
        for controller in self.controllers:
            logger.info(f"Starting {getattr(controller, 'name', type(controller).__name__)}")
            controller.start()

    def stop(self) -> None:
        self._stop_event.set()
        for controller in self.controllers:
            controller.stop()

    def run(self) -> None:
        """Start all controllers and block until stop() or Ctrl+C."""
        logger.info("=" * 60)
        logger.info("Starting SELinux Policy Helper")
        logger.info("=" * 60)

        self.start()
        logger.info("Controller is running. Press Ctrl+C to stop.")

        try:
            while not self._stop_event.wait(1):
                pass
        except KeyboardInterrupt:
            logger.info("Shutdown requested...")
            self.stop()
