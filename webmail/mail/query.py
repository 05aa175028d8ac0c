"""Mailbox view query building.

A mailbox view (inbox, sent, drafts, important, trash) is not stored on a
message; it is derived from the message flags and from where the requesting
user appears among the participants. Each view has its own builder which
returns a frozen :class:`MessageFilter`. The message repository is the only
place that turns a filter into SQL.
"""

import math
from dataclasses import dataclass, replace
from enum import Enum


class MailboxLabel(str, Enum):
    """Mailbox views a user can list."""

    INBOX = "inbox"
    SENT = "sent"
    DRAFTS = "drafts"
    IMPORTANT = "important"
    TRASH = "trash"

    @classmethod
    def parse(cls, value: str | None) -> "MailboxLabel":
        """Parse a requested label, falling back to the inbox."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.INBOX


class ParticipantRole(str, Enum):
    """Where the requesting user must appear on a message."""

    RECIPIENT = "recipient"  # in `to`
    SENDER = "sender"  # is `from`
    PARTICIPANT = "participant"  # `from`, `to`, `cc` or `bcc`


@dataclass(frozen=True)
class MessageFilter:
    """Structured message filter."""

    user_id: int
    role: ParticipantRole
    is_deleted: bool = False
    is_draft: bool | None = None
    is_important: bool | None = None
    is_read: bool | None = None
    search: str | None = None


@dataclass(frozen=True)
class MessageQuery:
    """A filter together with its sort order."""

    label: MailboxLabel
    filter: MessageFilter
    sort_field: str = "created_at"
    descending: bool = True


@dataclass(frozen=True)
class Page:
    """Pagination window and totals."""

    page: int
    limit: int
    total: int = 0

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit)

    def with_total(self, total: int) -> "Page":
        return Page(page=self.page, limit=self.limit, total=total)


def inbox_filter(user_id: int) -> MessageFilter:
    return MessageFilter(user_id=user_id, role=ParticipantRole.RECIPIENT, is_draft=False)


def sent_filter(user_id: int) -> MessageFilter:
    return MessageFilter(user_id=user_id, role=ParticipantRole.SENDER, is_draft=False)


def drafts_filter(user_id: int) -> MessageFilter:
    return MessageFilter(user_id=user_id, role=ParticipantRole.SENDER, is_draft=True)


def important_filter(user_id: int) -> MessageFilter:
    return MessageFilter(
        user_id=user_id,
        role=ParticipantRole.RECIPIENT,
        is_draft=False,
        is_important=True,
    )


def trash_filter(user_id: int) -> MessageFilter:
    return MessageFilter(user_id=user_id, role=ParticipantRole.PARTICIPANT, is_deleted=True)


_BUILDERS = {
    MailboxLabel.INBOX: inbox_filter,
    MailboxLabel.SENT: sent_filter,
    MailboxLabel.DRAFTS: drafts_filter,
    MailboxLabel.IMPORTANT: important_filter,
    MailboxLabel.TRASH: trash_filter,
}


def build_query(label: str | MailboxLabel | None, user_id: int, search: str | None = None) -> MessageQuery:
    """Build the query for a mailbox view, optionally narrowed by a search term.

    The search term is an additional constraint: it never widens the view.
    """
    mailbox = label if isinstance(label, MailboxLabel) else MailboxLabel.parse(label)
    message_filter = _BUILDERS[mailbox](user_id)

    term = (search or "").strip()
    if term:
        message_filter = replace(message_filter, search=term)

    return MessageQuery(label=mailbox, filter=message_filter)


def unread_query(user_id: int) -> MessageQuery:
    """Inbox messages the user has not opened yet."""
    return MessageQuery(
        label=MailboxLabel.INBOX,
        filter=replace(inbox_filter(user_id), is_read=False),
    )
