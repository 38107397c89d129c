"""Main application - consumes the email queues and forwards them to the email service."""
import signal
import sys
import time
from typing import List, Optional

from greencity_mailer.logging_conf import logger
from greencity_mailer import settings
from greencity_mailer.db import (
    Database,
    EcoNewsRepository,
    EcoNewsTranslationRepository,
    NewsSubscriberDirectory,
)
from greencity_mailer.dispatcher import NotificationDispatcher
from greencity_mailer.email_client import EmailServiceClient
from greencity_mailer.queue.spool_queue import SpoolQueue
from greencity_mailer.worker import Worker


class Application:
    """Main application that runs one worker per email queue."""

    def __init__(self, dispatcher: Optional[NotificationDispatcher] = None, db: Optional[Database] = None):
        self.db = db
        if dispatcher is None:
            self.db = self.db or Database()
            dispatcher = NotificationDispatcher(
                email_sender=EmailServiceClient(),
                news_repository=EcoNewsRepository(self.db),
                translation_repository=EcoNewsTranslationRepository(self.db),
                subscriber_directory=NewsSubscriberDirectory(self.db),
            )
        self.dispatcher = dispatcher
        self.workers: List[Worker] = []
        self.running = False

    def start(self):
        """Start the application."""
        logger.info("=" * 50)
        logger.info("GreenCity Mail Receiver")
        logger.info("=" * 50)
        logger.info(f"Spool: {settings.SPOOL_BASE_DIR}")
        logger.info(f"Email service: {settings.EMAIL_SERVICE_URL}")
        logger.info(f"Max retries: {settings.MAX_RETRIES}")
        logger.info("=" * 50)

        settings.validate_config()

        for queue_name in self.dispatcher.routes():
            queue = SpoolQueue(queue_name)
            worker = Worker(queue, self._handler_for(queue_name))
            worker.start()
            self.workers.append(worker)

        self.running = True
        logger.info(f"Started - listening on {len(self.workers)} queues")

    def stop(self):
        """Stop the application."""
        if not self.running:
            return
        self.running = False
        for worker in self.workers:
            worker.stop()
        self.workers = []
        if self.db:
            self.db.close()
        logger.info("Stopped")

    def run(self):
        """Main loop."""
        self.start()

        while self.running:
            try:
                time.sleep(1)
            except KeyboardInterrupt:
                break

        self.stop()

    def _handler_for(self, queue_name: str):
        def handle(payload):
            self.dispatcher.dispatch(queue_name, payload)
        return handle


def main():
    """Entry point."""
    app = Application()

    def signal_handler(sig, frame):
        logger.info(f"Received signal {sig}")
        app.stop()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        app.run()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
