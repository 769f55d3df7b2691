import json
import logging
from typing import Any, Dict, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError, field_validator

from .exceptions import MalformedPayload

logger = logging.getLogger(__name__)


class VerificationEvent(BaseModel):
    """Payload published when a user registers."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    email: str
    user_id: Union[StrictInt, StrictStr] = Field(alias="userId")
    activation_link: str = Field(alias="activationLink")

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        value = value.strip()
        if "@" not in value:
            raise ValueError("email must be an address")
        return value

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, value: Union[int, str]) -> Union[int, str]:
        if isinstance(value, str) and not value.strip():
            raise ValueError("userId must not be empty")
        return value

    @field_validator("activation_link")
    @classmethod
    def validate_activation_link(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("activationLink must be an http(s) URL")
        return value


class HandlerResult(BaseModel):
    status: str = "Success"


def _load_json(raw: Any, what: str) -> Any:
    if not isinstance(raw, (str, bytes)):
        raise MalformedPayload(f"{what} is not a JSON string")
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedPayload(f"Invalid JSON in {what}: {str(e)}") from e


def _extract_message(event: Dict) -> str:
    """
    Pull the payload string out of a notification envelope.

    Args:
        event: SNS/SQS Lambda event or a raw SQS ReceiveMessage message

    Returns:
        The JSON-encoded payload string
    """
    if not isinstance(event, dict):
        raise MalformedPayload("Notification envelope must be an object")

    # Raw SQS message from the poller
    if "Body" in event:
        return _unwrap_sns_notification(event["Body"])

    records = event.get("Records")
    if not isinstance(records, list) or not records:
        raise MalformedPayload("Notification envelope contains no records")
    if len(records) > 1:
        raise MalformedPayload(f"Expected exactly one record, got {len(records)}")

    record = records[0]
    if not isinstance(record, dict):
        raise MalformedPayload("Notification record must be an object")

    if "Sns" in record:
        sns = record["Sns"]
        if not isinstance(sns, dict) or "Message" not in sns:
            raise MalformedPayload("SNS record has no Message")
        return sns["Message"]

    if "body" in record:
        return _unwrap_sns_notification(record["body"])

    raise MalformedPayload("Unrecognised notification record")


def _unwrap_sns_notification(body: Any) -> Any:
    """Return the inner Message when an SQS body carries an SNS notification."""
    data = _load_json(body, "queue message body")
    if isinstance(data, dict) and data.get("Type") == "Notification" and "Message" in data:
        return data["Message"]
    return body


def parse_notification(event: Dict) -> VerificationEvent:
    """
    Decode a notification envelope into a VerificationEvent.

    Raises:
        MalformedPayload: if the envelope or payload cannot be decoded
    """
    message = _load_json(_extract_message(event), "notification message")

    if not isinstance(message, dict):
        raise MalformedPayload("Notification message must be a JSON object")

    try:
        return VerificationEvent.model_validate(message)
    except ValidationError as e:
        logger.warning(f"Invalid verification payload: {e.errors(include_url=False)}")
        raise MalformedPayload(f"Invalid verification payload: {str(e)}") from e
