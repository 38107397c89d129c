"""Worker for consuming one named queue."""
import time
import threading
from typing import Any, Callable, Dict, Optional

from greencity_mailer import settings
from greencity_mailer.logging_conf import logger
from greencity_mailer.queue.spool_queue import SpoolQueue


class Worker:
    """Worker that feeds messages from one queue to its handler."""

    def __init__(
        self,
        queue: SpoolQueue,
        handler: Callable[[Dict[str, Any]], None],
        batch_size: Optional[int] = None,
        idle_sleep: Optional[float] = None,
    ):
        self.queue = queue
        self.handler = handler
        self.batch_size = batch_size or settings.BATCH_SIZE
        self.idle_sleep = settings.POLL_INTERVAL if idle_sleep is None else idle_sleep
        self.running = False
        self.thread = None

    def start(self):
        """Start the worker in a background thread."""
        if self.running:
            logger.warning(f"Worker for {self.queue.name} is already running")
            return

        self.queue.recover_claimed()
        self.running = True
        self.thread = threading.Thread(target=self._run, name=f"worker-{self.queue.name}", daemon=True)
        self.thread.start()
        logger.info(f"Worker started for queue {self.queue.name}")

    def stop(self):
        """Stop the worker."""
        if not self.running:
            return

        self.running = False
        if self.thread:
            self.thread.join(timeout=10)
        logger.info(f"Worker stopped for queue {self.queue.name}")

    def process_batch(self) -> int:
        """Handle one batch. Returns the number of items taken off the queue."""
        batch = self.queue.dequeue_batch(max_items=self.batch_size)

        for item in batch:
            context = {"queue": item.queue, "message_id": item.message_id}
            try:
                logger.info(f"Processing attempt {item.attempts + 1}", extra=context)
                self.handler(item.payload)
                self.queue.mark_processed(item)
                logger.info("Successfully processed", extra=context)
            except Exception as e:
                logger.error(f"Failed to process: {e}", exc_info=True, extra=context)
                self.queue.mark_failed(item, f"{type(e).__name__}: {e}")

        return len(batch)

    def _run(self):
        """Main worker loop."""
        logger.info(f"Worker thread started for {self.queue.name}")

        while self.running:
            try:
                if not self.process_batch():
                    # No items, sleep briefly
                    time.sleep(self.idle_sleep)
            except Exception as e:
                logger.error(f"Worker error on {self.queue.name}: {e}", exc_info=True)
                time.sleep(5)

        logger.info(f"Worker thread stopped for {self.queue.name}")
