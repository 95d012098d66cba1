"""JSON serialization for the review workflow."""

import json
from datetime import datetime, date
from enum import Enum
from typing import Any

from dataclasses import asdict, is_dataclass
from dateutil.parser import isoparse

from .domain import Paper, Notice, ReviewEvent, User, agent_factory

_TYPES = {
    'paper': Paper,
    'notice': Notice,
    'review_event': ReviewEvent,
}


def _type_name(obj: Any) -> str:
    for name, klass in _TYPES.items():
        if isinstance(obj, klass):
            return name
    if isinstance(obj, User):
        return 'agent'
    return ''


class ReviewJSONEncoder(json.JSONEncoder):
    """Encodes domain objects in this package for serialization."""

    def default(self, obj: object) -> Any:
        """Look for domain objects, and use their dict-coercion methods."""
        if is_dataclass(obj) and not isinstance(obj, type):
            data = asdict(obj)
            type_name = _type_name(obj)
            if type_name:
                data['__type__'] = type_name
            return data
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super(ReviewJSONEncoder, self).default(obj)


class ReviewJSONDecoder(json.JSONDecoder):
    """Decode domain objects from JSON data."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        """Pass :func:`object_hook` to the base constructor."""
        kwargs['object_hook'] = kwargs.get('object_hook', self.object_hook)
        super(ReviewJSONDecoder, self).__init__(*args, **kwargs)

    def object_hook(self, obj: dict, **extra: Any) -> Any:
        """Decode domain objects in this package."""
        type_name = obj.pop('__type__', None)
        if type_name == 'agent':
            return agent_factory(**obj)
        if type_name in _TYPES:
            return _TYPES[type_name](**obj)
        for key, value in obj.items():
            if key in ('created', 'updated', 'published') \
                    and isinstance(value, str):
                obj[key] = isoparse(value)
        return obj


def dumps(obj: Any) -> str:
    """Generate JSON from a Python object."""
    return json.dumps(obj, cls=ReviewJSONEncoder)


def loads(data: str) -> Any:
    """Load a Python object from JSON."""
    return json.loads(data, cls=ReviewJSONDecoder)


def to_dict(obj: Any) -> Any:
    """Make ``obj`` JSON-friendly, leaving out type hints for clients."""
    return json.loads(dumps(obj), object_hook=_strip_type)


def _strip_type(obj: dict) -> dict:
    obj.pop('__type__', None)
    return obj
