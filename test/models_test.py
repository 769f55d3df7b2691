import json

import pytest

from conftest import sns_event
from email_verification.exceptions import MalformedPayload
from email_verification.models import VerificationEvent, parse_notification

PAYLOAD = {"email": "a@b.com", "userId": 42, "activationLink": "https://x/verify/42"}


def test_sns_event():
    event = parse_notification(sns_event(PAYLOAD))

    assert event == VerificationEvent(email="a@b.com", user_id=42, activation_link="https://x/verify/42")


def test_sqs_event():
    event = parse_notification({"Records": [{"eventSource": "aws:sqs", "body": json.dumps(PAYLOAD)}]})

    assert event.user_id == 42
    assert event.email == "a@b.com"


def test_sns_notification_delivered_through_sqs():
    notification = {"Type": "Notification", "TopicArn": "arn:aws:sns:us-east-1:1:user-registered",
                     "Message": json.dumps(PAYLOAD)}

    event = parse_notification({"Records": [{"body": json.dumps(notification)}]})

    assert event.activation_link == "https://x/verify/42"


def test_raw_sqs_message():
    event = parse_notification({"MessageId": "m-1", "ReceiptHandle": "rh-1", "Body": json.dumps(PAYLOAD)})

    assert event.user_id == 42


def test_string_user_id_is_kept():
    payload = dict(PAYLOAD, userId="8f14e45f-ceea-467f-a0e6-5b1a2c3d4e5f")

    event = parse_notification(sns_event(payload))

    assert event.user_id == "8f14e45f-ceea-467f-a0e6-5b1a2c3d4e5f"


def test_extra_fields_are_ignored():
    event = parse_notification(sns_event(dict(PAYLOAD, firstName="Ada")))

    assert event.email == "a@b.com"


def test_activation_link_is_verbatim():
    link = "https://x/verify?token=a%2Fb&user=42"

    event = parse_notification(sns_event(dict(PAYLOAD, activationLink=link)))

    assert event.activation_link == link


@pytest.mark.parametrize("event", [
    {},
    {"Records": []},
    {"Records": [{"Sns": {"Message": json.dumps(PAYLOAD)}}] * 2},
    {"Records": [{"Sns": {}}]},
    {"Records": [{"unknown": True}]},
    {"Records": [{"Sns": {"Message": "not json"}}]},
    {"Records": [{"Sns": {"Message": json.dumps([PAYLOAD])}}]},
    {"Body": "{"},
    "not a dict",
])
def test_malformed_envelopes(event):
    with pytest.raises(MalformedPayload):
        parse_notification(event)


@pytest.mark.parametrize("missing", ["email", "userId", "activationLink"])
def test_missing_fields(missing):
    payload = {key: value for key, value in PAYLOAD.items() if key != missing}

    with pytest.raises(MalformedPayload):
        parse_notification(sns_event(payload))


@pytest.mark.parametrize("field, value", [
    ("email", "not-an-address"),
    ("userId", ""),
    ("userId", None),
    ("userId", True),
    ("userId", False),
    ("userId", 42.5),
    ("activationLink", "javascript:alert(1)"),
])
def test_invalid_fields(field, value):
    with pytest.raises(MalformedPayload):
        parse_notification(sns_event(dict(PAYLOAD, **{field: value})))


def test_numeric_string_user_id_stays_a_string():
    event = parse_notification(sns_event(dict(PAYLOAD, userId="42")))

    assert event.user_id == "42"
