import json

import pytest

from email_verification.config import Settings
from email_verification.credentials import CredentialProvider, Credentials
from email_verification.email_client import EmailClient
from email_verification.exceptions import DatabaseUpdateFailure
from email_verification.handler import NotificationHandler
from email_verification.metrics import MetricsObserver


def make_settings(**overrides):
    values = dict(
        db_host="db.internal",
        db_user="app",
        db_name="webapp",
        db_password="db-secret",
        sendgrid_api_key="SG.test-key",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


def sns_event(payload):
    return {"Records": [{"EventSource": "aws:sns", "Sns": {"Message": json.dumps(payload)}}]}


class FakeCredentialProvider(CredentialProvider):
    def __init__(self, error=None):
        self.error = error
        self.calls = 0

    def resolve(self):
        self.calls += 1
        if self.error:
            raise self.error
        return Credentials(sendgrid_api_key="SG.resolved", db_password="resolved-password")


class FakeEmailClient(EmailClient):
    def __init__(self, error=None):
        self.error = error
        self.api_keys = []
        self.sent = []

    def __call__(self, api_key):
        self.api_keys.append(api_key)
        return self

    def send(self, message):
        if self.error:
            raise self.error
        self.sent.append(message)
        return "msg-1"


class FakeRepository:
    def __init__(self, error=None):
        self.error = error
        self.passwords = []
        self.updated = []
        self.closed = 0

    def __call__(self, password):
        self.passwords.append(password)
        return self

    def mark_email_sent(self, user_id):
        self.updated.append(user_id)
        if self.error:
            raise self.error
        return 1

    def close(self):
        self.closed += 1


class RecordingMetrics(MetricsObserver):
    def __init__(self):
        self.counters = []

    def increment(self, metric_name, value=1, unit="Count"):
        self.counters.append(metric_name)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def credentials():
    return FakeCredentialProvider()


@pytest.fixture
def email_client():
    return FakeEmailClient()


@pytest.fixture
def repository():
    return FakeRepository()


@pytest.fixture
def metrics():
    return RecordingMetrics()


@pytest.fixture
def handler(settings, credentials, email_client, repository, metrics):
    return NotificationHandler(
        settings=settings,
        credential_provider=credentials,
        email_client_factory=email_client,
        repository_factory=repository,
        metrics=metrics,
    )


@pytest.fixture
def payload():
    return {"email": "a@b.com", "userId": 42, "activationLink": "https://x/verify/42"}


@pytest.fixture
def db_error():
    return DatabaseUpdateFailure(42, "OperationalError")
