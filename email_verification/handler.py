"""
Verification email handler and its Lambda entry point.

Each invocation runs parse -> resolve credentials -> send email -> update
the user row -> emit EmailsSent, strictly in that order. Any failure aborts
the remaining steps. Whether a database failure after a successful send is
fatal is decided by Settings.db_failure_policy:

- "raise": the error propagates and the platform redelivers the event
- "log": the error is logged and counted, the invocation still succeeds
"""
import logging
from functools import lru_cache
from typing import Callable, Dict, Optional

from .config import Settings, settings as default_settings
from .credentials import CredentialProvider, build_credential_provider
from .email_client import EmailClient, SendGridEmailClient, build_verification_email
from .exceptions import (
    DatabaseUpdateFailure,
    EmailSendFailure,
    MalformedPayload,
    SecretRetrievalFailure,
)
from .logging_config import setup_logging
from .metrics import (
    DATABASE_UPDATE_FAILURES,
    EMAIL_SEND_FAILURES,
    EMAILS_SENT,
    MALFORMED_PAYLOADS,
    SECRET_RETRIEVAL_FAILURES,
    MetricsObserver,
    build_metrics,
)
from .models import HandlerResult, VerificationEvent, parse_notification
from .user_repository import UserRepository, database_url

logger = logging.getLogger(__name__)

EmailClientFactory = Callable[[str], EmailClient]
RepositoryFactory = Callable[[str], UserRepository]


class NotificationHandler:
    """Sends the verification email for one event and records it on the user row."""

    def __init__(self,
                 settings: Settings,
                 credential_provider: CredentialProvider,
                 email_client_factory: EmailClientFactory,
                 repository_factory: RepositoryFactory,
                 metrics: MetricsObserver):
        """
        Args:
            settings: Validated worker settings
            credential_provider: Resolves the API key and DB password per invocation
            email_client_factory: Builds an email client from an API key
            repository_factory: Builds a user repository from a DB password
            metrics: Counter sink

        Raises:
            ConfigurationMissing: if required settings are absent
        """
        settings.require()
        self.settings = settings
        self.credential_provider = credential_provider
        self.email_client_factory = email_client_factory
        self.repository_factory = repository_factory
        self.metrics = metrics

    def handle(self, event: Dict) -> Dict:
        try:
            verification = parse_notification(event)
        except MalformedPayload:
            self.metrics.increment(MALFORMED_PAYLOADS)
            raise

        logger.info(
            f"Received message for email: {verification.email}, userId: {verification.user_id}"
        )

        try:
            credentials = self.credential_provider.resolve()
        except SecretRetrievalFailure:
            self.metrics.increment(SECRET_RETRIEVAL_FAILURES)
            raise

        message = build_verification_email(
            to=verification.email,
            from_email=self.settings.from_email,
            activation_link=verification.activation_link,
        )
        try:
            self.email_client_factory(credentials.sendgrid_api_key).send(message)
        except EmailSendFailure:
            self.metrics.increment(EMAIL_SEND_FAILURES)
            raise

        self._record_email_sent(verification, credentials.db_password)

        self.metrics.increment(EMAILS_SENT)
        return HandlerResult().model_dump()

    def _record_email_sent(self, verification: VerificationEvent, db_password: str):
        repository = None
        try:
            try:
                repository = self.repository_factory(db_password)
            except Exception as e:
                logger.error(f"Failed to connect to user database: {str(e)}")
                raise DatabaseUpdateFailure(verification.user_id, e.__class__.__name__) from e

            repository.mark_email_sent(verification.user_id)
            logger.info(
                f"Logged email sent to {verification.email} for user ID {verification.user_id}"
            )
        except DatabaseUpdateFailure as e:
            self.metrics.increment(DATABASE_UPDATE_FAILURES)
            if self.settings.db_failure_policy == "log":
                logger.error(f"Email was sent but could not be recorded: {str(e)}")
                return
            raise
        finally:
            if repository is not None:
                repository.close()


def build_handler(settings: Optional[Settings] = None,
                  secrets_client=None,
                  cloudwatch_client=None) -> NotificationHandler:
    """
    Wire a NotificationHandler from settings.

    Configuration is validated before any AWS client is created.
    """
    settings = settings or default_settings
    settings.require()

    def repository_factory(password: str) -> UserRepository:
        return UserRepository.connect(database_url(settings, password))

    return NotificationHandler(
        settings=settings,
        credential_provider=build_credential_provider(settings, client=secrets_client),
        email_client_factory=SendGridEmailClient,
        repository_factory=repository_factory,
        metrics=build_metrics(settings, client=cloudwatch_client),
    )


@lru_cache(maxsize=None)
def get_handler() -> NotificationHandler:
    setup_logging()
    if default_settings.sns_topic_arn:
        logger.info(f"Subscribed to topic {default_settings.sns_topic_arn}")
    return build_handler()


def lambda_handler(event, context):
    """AWS Lambda entry point for SNS and SQS triggers."""
    try:
        return get_handler().handle(event)
    except Exception as e:
        logger.error(f"Error in Lambda function: {str(e)}")
        raise
