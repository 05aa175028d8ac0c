"""Capability predicates for messages."""

from ..models import Message


def is_participant(message: Message, user_id: int) -> bool:
    """Return True if the user is the sender or any recipient."""
    return user_id in message.participant_ids()


def can_read(message: Message, user_id: int) -> bool:
    return is_participant(message, user_id)


def can_write(message: Message, user_id: int) -> bool:
    """Any participant may change view flags or move the message to trash."""
    return is_participant(message, user_id)


def can_reply(message: Message, user_id: int) -> bool:
    """Only direct and carbon-copy recipients may reply."""
    return user_id in message.to_ids or user_id in message.cc_ids


def can_forward(message: Message, user_id: int) -> bool:
    return is_participant(message, user_id)


def should_mark_read(message: Message, user_id: int) -> bool:
    """Reading an unread message as a `to` recipient marks it read."""
    return not message.is_read and user_id in message.to_ids


def can_see_bcc(message: Message, user_id: int) -> bool:
    return message.from_id == user_id
