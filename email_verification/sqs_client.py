import logging
from typing import Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings

logger = logging.getLogger(__name__)


class SQSClient:
    """SQS client for the verification queue poller."""

    def __init__(self, settings: Settings, client=None):
        """Initialize SQS client for the configured queue."""
        self.settings = settings
        self.queue_url = settings.queue_url
        self.sqs = client or boto3.client('sqs', region_name=settings.aws_region)
        logger.info(f"SQS client initialized with queue URL: {self.queue_url}")

    def receive_message(self,
                        wait_time: Optional[int] = None,
                        visibility_timeout: Optional[int] = None) -> List[Dict]:
        """
        Receive at most one message from the queue.

        Args:
            wait_time: Long polling wait time in seconds (0-20)
            visibility_timeout: Visibility timeout in seconds

        Returns:
            List with zero or one message dictionaries
        """
        wait_time = self.settings.sqs_wait_time if wait_time is None else wait_time
        visibility_timeout = (self.settings.sqs_visibility_timeout
                              if visibility_timeout is None else visibility_timeout)

        try:
            logger.debug(f"Receiving messages from {self.queue_url}")
            response = self.sqs.receive_message(
                QueueUrl=self.queue_url,
                MaxNumberOfMessages=1,
                WaitTimeSeconds=wait_time,
                VisibilityTimeout=visibility_timeout,
                AttributeNames=['All'],
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error receiving messages from {self.queue_url}: {str(e)}")
            return []

        messages = response.get('Messages', [])
        if messages:
            logger.info(f"Received {len(messages)} messages from {self.queue_url}")
        return messages

    def delete_message(self, receipt_handle: str) -> bool:
        """
        Delete a message from the queue.

        Returns:
            True if successful, False otherwise
        """
        try:
            self.sqs.delete_message(
                QueueUrl=self.queue_url,
                ReceiptHandle=receipt_handle
            )
            logger.debug("Message deleted successfully")
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error deleting message: {str(e)}")
            return False
