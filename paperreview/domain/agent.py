"""Data structures for agents."""

import hashlib
from enum import Enum
from typing import Any, Optional

from dataclasses import dataclass, field

__all__ = ('Role', 'User', 'agent_factory')


class Role(Enum):
    """Roles that a user can hold in the organization."""

    STUDENT = 'student'
    FACULTY = 'faculty'
    STAFF = 'staff'
    """Editors."""
    ADMIN = 'admin'

    @property
    def rank(self) -> int:
        """Position in the review hierarchy; higher outranks lower."""
        return _RANKS[self]

    def outranks(self, other: 'Role') -> bool:
        return self.rank > other.rank


_RANKS = {Role.STUDENT: 0, Role.FACULTY: 1, Role.STAFF: 2, Role.ADMIN: 3}


@dataclass
class User:
    """
    An (human) end user acting on papers.

    Identity and role are resolved by the authentication service and are
    trusted as given.
    """

    native_id: str
    """Identifier of the user in the user directory."""

    role: Role = field(default=Role.STUDENT)
    email: str = field(default_factory=str)
    name: str = field(default_factory=str)
    department: Optional[str] = field(default=None)
    agent_identifier: str = field(default_factory=str)

    def __post_init__(self) -> None:
        """Set derivative fields."""
        self.native_id = str(self.native_id)
        if not isinstance(self.role, Role):
            self.role = Role(self.role)
        self.agent_identifier = self.get_agent_identifier()

    def get_agent_identifier(self) -> str:
        """Get the unique identifier for this user, based on the native ID."""
        h = hashlib.new('sha1')
        h.update(b'User:%s' % self.native_id.encode('utf-8'))
        return h.hexdigest()

    @property
    def display_name(self) -> str:
        """Name to use in messages, falling back to the e-mail address."""
        return self.name or self.email or self.native_id

    def __eq__(self, other: Any) -> bool:
        """Equality comparison for users based on identifier."""
        if not isinstance(other, User):
            return False
        return self.agent_identifier == other.agent_identifier


def agent_factory(**data: Any) -> User:
    """Instantiate a :class:`.User` from raw data."""
    native_id = data.pop('native_id', None)
    if not native_id:
        raise ValueError('No such agent: %s' % native_id)
    data = {k: v for k, v in data.items() if k in User.__dataclass_fields__}
    data.pop('agent_identifier', None)
    return User(native_id, **data)
