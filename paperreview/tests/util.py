from contextlib import contextmanager
from typing import Optional

from flask import Flask

from .. import init_app
from ..domain import Role
from ..services import database
from ..services.database import models


@contextmanager
def in_memory_db(app: Optional[Flask] = None):
    """Provide an in-memory sqlite database for testing purposes."""
    if app is None:
        app = Flask('foo')
    app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite://'
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['ENABLE_ASYNC'] = False
    init_app(app)
    with app.app_context():
        database.create_all()
        try:
            yield database.current_session()
        finally:
            database.drop_all()


def add_user(session, user_id: str, role: Role, name: str = '',
             department: Optional[str] = None) -> None:
    """Put a user in the directory."""
    session.add(models.User(user_id=user_id,
                            email=f'{user_id}@uni.edu',
                            full_name=name or None,
                            role=role.value,
                            department=department))
    session.commit()
