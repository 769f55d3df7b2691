import logging
from typing import Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from .config import Settings
from .exceptions import DatabaseUpdateFailure, UnknownUser

logger = logging.getLogger(__name__)

# CURRENT_TIMESTAMP is MySQL's NOW() synonym
MARK_EMAIL_SENT = text(
    "UPDATE user "
    "SET email_sent_at = CURRENT_TIMESTAMP, email_status = 'sent' "
    "WHERE id = :user_id"
)


def database_url(settings: Settings, password: str) -> URL:
    return URL.create(
        "mysql+pymysql",
        username=settings.db_user,
        password=password,
        host=settings.db_host,
        port=settings.db_port,
        database=settings.db_name,
    )


class UserRepository:
    """Records verification email delivery on the user table."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def connect(cls, url: Union[str, URL]) -> "UserRepository":
        # NullPool: a released connection is closed, nothing outlives the invocation
        return cls(create_engine(url, poolclass=NullPool, future=True))

    def mark_email_sent(self, user_id: Union[int, str]) -> int:
        """
        Set email_status to 'sent' and stamp email_sent_at for one user.

        The connection is held for this single statement and released on
        every exit path.

        Returns:
            Number of rows updated (always 1 on success)

        Raises:
            UnknownUser: if no row has this id
            DatabaseUpdateFailure: on any database error
        """
        try:
            with self.engine.begin() as connection:
                result = connection.execute(MARK_EMAIL_SENT, {"user_id": user_id})
                rowcount = result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Failed to log email in database: {str(e)}")
            raise DatabaseUpdateFailure(user_id, e.__class__.__name__) from e

        if rowcount == 0:
            logger.error(f"No user row found for user ID {user_id}")
            raise UnknownUser(user_id)

        return rowcount

    def close(self):
        self.engine.dispose()
