"""Utility classes and functions for :mod:`.services.database`."""

import logging
from contextlib import contextmanager
from typing import Optional, Generator, Any

from flask import Flask
import sqlalchemy.types as types
from sqlalchemy.orm.session import Session
from flask_sqlalchemy import SQLAlchemy

from .exceptions import DatabaseBaseException, TransactionFailed

from ... import serializer


class ReviewSQLAlchemy(SQLAlchemy):
    """SQLAlchemy integration for the paper record store."""

    def init_app(self, app: Flask) -> None:
        """Set default configuration."""
        app.config.setdefault(
            'SQLALCHEMY_DATABASE_URI',
            app.config.get('DATABASE_URI', 'sqlite://')
        )
        app.config.setdefault('SQLALCHEMY_TRACK_MODIFICATIONS', False)
        super(ReviewSQLAlchemy, self).init_app(app)


db: SQLAlchemy = ReviewSQLAlchemy()


logger = logging.getLogger(__name__)


class SQLiteJSON(types.TypeDecorator):
    """A SQLite-friendly JSON data type."""

    impl = types.TEXT
    cache_ok = True

    def process_bind_param(self, value: Optional[Any],
                           dialect: Any) -> Optional[str]:
        """Serialize a value to JSON."""
        if value is not None:
            value = serializer.dumps(value)
        return value

    def process_result_value(self, value: Optional[str],
                             dialect: Any) -> Optional[Any]:
        """Deserialize JSON content."""
        if value is not None:
            value = serializer.loads(value)
        return value


# SQLite does not support JSON, so we extend JSON to use our custom data type
# as a variant for the 'sqlite' dialect.
FriendlyJSON = types.JSON().with_variant(SQLiteJSON, 'sqlite')


def current_session() -> Session:
    """Get/create :class:`.Session` for this context."""
    return db.session()


@contextmanager
def transaction() -> Generator:
    """Context manager for database transaction."""
    session = current_session()
    try:
        yield session
        session.commit()
    except DatabaseBaseException as e:
        logger.debug('Command failed, rolling back: %s', str(e))
        session.rollback()
        raise   # Propagate exceptions raised from this module.
    except Exception as e:
        logger.debug('Command failed, rolling back: %s', str(e))
        session.rollback()
        raise TransactionFailed('Failed to execute transaction') from e
