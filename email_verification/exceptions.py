from typing import List, Optional, Union


class VerificationWorkerError(Exception):
    """Base class for every error the worker raises."""


class ConfigurationMissing(VerificationWorkerError):
    """Raised when required settings are absent."""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required configuration: {', '.join(self.missing)}")


class SecretRetrievalFailure(VerificationWorkerError):
    def __init__(self, secret_id: str, reason: str):
        self.secret_id = secret_id
        super().__init__(f"Failed to retrieve secret {secret_id}: {reason}")


class MalformedPayload(VerificationWorkerError):
    pass


class EmailSendFailure(VerificationWorkerError):
    def __init__(self, recipient: str):
        self.recipient = recipient
        super().__init__(f"Failed to send email to {recipient}")


class DatabaseUpdateFailure(VerificationWorkerError):
    def __init__(self, user_id: Optional[Union[int, str]], reason: str):
        self.user_id = user_id
        super().__init__(f"Failed to record email sent for user {user_id}: {reason}")


class UnknownUser(DatabaseUpdateFailure):
    """The UPDATE matched no row."""

    def __init__(self, user_id: Union[int, str]):
        super().__init__(user_id, "no matching user row")
