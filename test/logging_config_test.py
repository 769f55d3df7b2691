import json
import logging

from conftest import make_settings
from email_verification.logging_config import CustomJsonFormatter


def test_json_records_carry_service_metadata():
    settings = make_settings(service_name="email-verification-worker", environment="prod")
    formatter = CustomJsonFormatter(
        '%(timestamp)s %(levelname)s %(service)s %(environment)s %(name)s %(message)s',
        service=settings.service_name,
        environment=settings.environment,
    )
    record = logging.LogRecord("email_verification.handler", logging.INFO, __file__, 1,
                               "Verification email sent to a@b.com", None, None)

    data = json.loads(formatter.format(record))

    assert data["message"] == "Verification email sent to a@b.com"
    assert data["service"] == "email-verification-worker"
    assert data["environment"] == "prod"
    assert data["levelname"] == "INFO"
    assert data["timestamp"].endswith("Z")
