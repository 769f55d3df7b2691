"""
Credential resolution for the worker.

Credentials are resolved once per invocation and never cached across
invocations, so a rotated secret is picked up by the next message.
"""
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings
from .exceptions import SecretRetrievalFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    sendgrid_api_key: str
    db_password: str

    def __repr__(self) -> str:
        return "Credentials(sendgrid_api_key='***', db_password='***')"


class CredentialProvider(ABC):
    """Capability that yields the secrets one invocation needs."""

    @abstractmethod
    def resolve(self) -> Credentials:
        pass


class EnvironmentCredentialProvider(CredentialProvider):
    """Reads credentials straight from process configuration."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def resolve(self) -> Credentials:
        return Credentials(
            sendgrid_api_key=self.settings.sendgrid_api_key,
            db_password=self.settings.db_password,
        )


class SecretsManagerCredentialProvider(CredentialProvider):
    """Resolves secret references through AWS Secrets Manager."""

    API_KEY_FIELD = "api_key"
    PASSWORD_FIELD = "password"

    def __init__(self, client, api_key_secret_id: str, db_password_secret_id: str):
        """
        Args:
            client: boto3 secretsmanager client
            api_key_secret_id: Secret holding the SendGrid API key
            db_password_secret_id: Secret holding the database password
        """
        self.client = client
        self.api_key_secret_id = api_key_secret_id
        self.db_password_secret_id = db_password_secret_id

    @classmethod
    def from_settings(cls, settings: Settings, client=None) -> "SecretsManagerCredentialProvider":
        client = client or boto3.client('secretsmanager', region_name=settings.aws_region)
        return cls(
            client,
            api_key_secret_id=settings.sendgrid_api_key_secret_id,
            db_password_secret_id=settings.db_password_secret_id,
        )

    def resolve(self) -> Credentials:
        return Credentials(
            sendgrid_api_key=self._get_secret(self.api_key_secret_id, self.API_KEY_FIELD),
            db_password=self._get_secret(self.db_password_secret_id, self.PASSWORD_FIELD),
        )

    def _get_secret(self, secret_id: str, field: str) -> str:
        """
        Fetch one secret value.

        A SecretString holding a JSON object yields the given field, any
        other string is returned as-is.
        """
        try:
            response = self.client.get_secret_value(SecretId=secret_id)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"Failed to get secret {secret_id}: {error_code}")
            raise SecretRetrievalFailure(secret_id, error_code) from e
        except BotoCoreError as e:
            logger.error(f"Failed to get secret {secret_id}: {str(e)}")
            raise SecretRetrievalFailure(secret_id, str(e)) from e

        secret_string = response.get("SecretString")
        if not secret_string:
            raise SecretRetrievalFailure(secret_id, "secret has no string value")

        value = self._extract_field(secret_string, field)
        if not value:
            raise SecretRetrievalFailure(secret_id, f"secret has no '{field}' field")

        logger.debug(f"Resolved secret {secret_id}")
        return value

    @staticmethod
    def _extract_field(secret_string: str, field: str) -> Optional[str]:
        try:
            data = json.loads(secret_string)
        except json.JSONDecodeError:
            return secret_string

        if isinstance(data, dict):
            value = data.get(field)
            return str(value) if value is not None else None
        return secret_string


def build_credential_provider(settings: Settings, client=None) -> CredentialProvider:
    if settings.credential_source == "secretsmanager":
        return SecretsManagerCredentialProvider.from_settings(settings, client=client)
    return EnvironmentCredentialProvider(settings)
