from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationMissing


class Settings(BaseSettings):
    """Configuration settings for the Email Verification Worker"""

    # Application settings
    service_name: str = "email-verification-worker"
    log_level: str = "INFO"
    environment: str = "dev"

    # AWS settings
    aws_region: str = "us-east-1"
    sns_topic_arn: Optional[str] = None

    # SQS poller settings
    queue_url: Optional[str] = None
    sqs_wait_time: int = 20  # seconds
    sqs_visibility_timeout: int = 60  # seconds

    # Credential resolution
    credential_source: Literal["env", "secretsmanager"] = "env"
    sendgrid_api_key: Optional[str] = None
    sendgrid_api_key_secret_id: Optional[str] = None

    # Database settings
    db_host: Optional[str] = None
    db_port: int = 3306
    db_user: Optional[str] = None
    db_name: Optional[str] = None
    db_password: Optional[str] = None
    db_password_secret_id: Optional[str] = None
    db_failure_policy: Literal["raise", "log"] = "raise"

    # Email settings
    from_email: str = "noreply@em2722.demo.csyeproject.me"  # verified sender

    # CloudWatch metrics
    metrics_enabled: bool = True
    metrics_namespace: str = "EmailVerificationMetrics"
    metrics_function_name: str = "emailVerificationLambda"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    def missing_required(self) -> List[str]:
        """
        List the settings that must be present for the handler to run.

        Which credential settings are required depends on credential_source.
        """
        required = ["db_host", "db_user", "db_name"]
        if self.credential_source == "secretsmanager":
            required += ["sendgrid_api_key_secret_id", "db_password_secret_id"]
        else:
            required += ["sendgrid_api_key", "db_password"]

        return [name.upper() for name in required if not getattr(self, name)]

    def require(self) -> None:
        missing = self.missing_required()
        if missing:
            raise ConfigurationMissing(missing)


# Create settings instance
settings = Settings()
