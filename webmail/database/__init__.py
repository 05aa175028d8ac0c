"""Database module for Webmail."""

from .connection import Database
from .message_repository import MessageRepository
from .user_repository import UserRepository

__all__ = ["Database", "MessageRepository", "UserRepository"]
