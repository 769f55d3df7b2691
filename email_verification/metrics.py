import logging
from abc import ABC, abstractmethod

import boto3

from .config import Settings

logger = logging.getLogger(__name__)

EMAILS_SENT = "EmailsSent"
MALFORMED_PAYLOADS = "MalformedPayloads"
SECRET_RETRIEVAL_FAILURES = "SecretRetrievalFailures"
EMAIL_SEND_FAILURES = "EmailSendFailures"
DATABASE_UPDATE_FAILURES = "DatabaseUpdateFailures"


class MetricsObserver(ABC):
    """Fire-and-forget counter sink. Implementations must never raise."""

    @abstractmethod
    def increment(self, metric_name: str, value: float = 1, unit: str = "Count") -> None:
        pass


class NullMetrics(MetricsObserver):
    def increment(self, metric_name: str, value: float = 1, unit: str = "Count") -> None:
        pass


class CloudWatchMetrics(MetricsObserver):
    """Pushes counters to CloudWatch with a FunctionName dimension."""

    def __init__(self, client, namespace: str, function_name: str):
        self.client = client
        self.namespace = namespace
        self.function_name = function_name

    @classmethod
    def from_settings(cls, settings: Settings, client=None) -> "CloudWatchMetrics":
        client = client or boto3.client('cloudwatch', region_name=settings.aws_region)
        return cls(client, settings.metrics_namespace, settings.metrics_function_name)

    def increment(self, metric_name: str, value: float = 1, unit: str = "Count") -> None:
        try:
            self.client.put_metric_data(
                Namespace=self.namespace,
                MetricData=[
                    {
                        'MetricName': metric_name,
                        'Dimensions': [{'Name': 'FunctionName', 'Value': self.function_name}],
                        'Unit': unit,
                        'Value': value,
                    }
                ],
            )
            logger.debug(f"Metric {metric_name} pushed successfully")
        except Exception as e:
            logger.error(f"Failed to push metric {metric_name}: {str(e)}")


def build_metrics(settings: Settings, client=None) -> MetricsObserver:
    if not settings.metrics_enabled:
        return NullMetrics()
    return CloudWatchMetrics.from_settings(settings, client=client)
