import logging
import signal
import sys
import time
from typing import Dict, Optional

from .config import Settings, settings as default_settings
from .exceptions import ConfigurationMissing, VerificationWorkerError
from .handler import NotificationHandler, build_handler
from .logging_config import setup_logging
from .sqs_client import SQSClient

logger = logging.getLogger(__name__)


class VerificationConsumer:
    """Polls the verification queue and hands each message to the handler."""

    def __init__(self, handler: NotificationHandler, sqs_client: SQSClient,
                 idle_sleep_seconds: float = 1.0):
        self.handler = handler
        self.sqs_client = sqs_client
        self.idle_sleep_seconds = idle_sleep_seconds
        self.running = True
        logger.info("Verification consumer initialized")

    def stop(self, *_):
        """Handle termination signals for graceful shutdown."""
        logger.info("Shutdown signal received, finishing current message...")
        self.running = False

    def process_message(self, message: Dict) -> bool:
        """
        Handle one queue message.

        The message is deleted only after the handler succeeds; on failure it
        stays on the queue and becomes visible again after the visibility
        timeout.

        Returns:
            True if the message was handled and deleted
        """
        receipt_handle = message.get('ReceiptHandle')
        if not receipt_handle:
            logger.error("Missing receipt handle in SQS message")
            return False

        try:
            self.handler.handle(message)
        except VerificationWorkerError as e:
            logger.error(f"Failed to process message {message.get('MessageId')}: {str(e)}")
            return False

        return self.sqs_client.delete_message(receipt_handle)

    def poll_once(self) -> int:
        messages = self.sqs_client.receive_message()
        return sum(1 for message in messages if self.process_message(message))

    def run(self) -> int:
        """Run the consumer until a shutdown signal arrives."""
        logger.info("Starting Email Verification Consumer")

        while self.running:
            try:
                if self.poll_once() == 0 and self.running:
                    time.sleep(self.idle_sleep_seconds)
            except Exception as e:
                logger.error(f"Error in message processing loop: {str(e)}")
                time.sleep(5)  # Sleep before polling again after error

        logger.info("Email Verification Consumer shutdown gracefully")
        return 0


def main(settings: Optional[Settings] = None) -> int:
    """Entry point for the long-running queue poller."""
    settings = settings or default_settings
    setup_logging(settings)

    logger.info(f"Starting Email Verification Consumer in {settings.environment} environment")

    try:
        if not settings.queue_url:
            raise ConfigurationMissing(["QUEUE_URL"])
        handler = build_handler(settings)
    except ConfigurationMissing as e:
        logger.critical(str(e))
        return 1

    consumer = VerificationConsumer(handler, SQSClient(settings))
    signal.signal(signal.SIGINT, consumer.stop)
    signal.signal(signal.SIGTERM, consumer.stop)

    return consumer.run()


if __name__ == "__main__":
    sys.exit(main())
