"""Core data structures for the paper review system."""

from .agent import Role, User, agent_factory
from .notification import Kind, Notice
from .paper import Status, Paper, PaperMetadata, Draft, Content, Patch, \
    Category, as_status
from .review import Decision, ReviewEvent
