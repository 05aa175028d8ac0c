"""Message operations: listing, reading, sending, updating, trashing, replying, forwarding."""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from ..database.message_repository import MUTABLE_FLAGS, MessageRepository
from ..database.user_repository import UserRepository
from ..exceptions import (
    AuthorizationError,
    NotFoundError,
    UnresolvedRecipientError,
    ValidationError,
)
from ..models import (
    LABEL_DRAFT,
    LABEL_SENT,
    SUBJECT_MAX_LENGTH,
    Attachment,
    Message,
    ResolvedMessage,
    User,
    UserSummary,
)
from . import access, derivation
from .query import MailboxLabel, Page, build_query, unread_query

logger = logging.getLogger(__name__)


@dataclass
class ComposeRequest:
    """Fields submitted when sending a message or saving a draft."""
    to: list[str] = field(default_factory=list)
    cc: list[str] = field(default_factory=list)
    bcc: list[str] = field(default_factory=list)
    subject: str = ""
    body: str = ""
    is_draft: bool = False
    attachments: list[Attachment] = field(default_factory=list)


@dataclass
class ForwardRequest:
    """Fields submitted when forwarding a message."""
    to: list[str] = field(default_factory=list)
    cc: list[str] = field(default_factory=list)
    bcc: list[str] = field(default_factory=list)
    body: str | None = None


@dataclass
class MailboxCounts:
    """Message totals shown on the dashboard."""
    inbox: int
    unread: int
    sent: int
    drafts: int


# Bulk mailbox actions and the flag changes they apply. None moves to trash.
BULK_ACTIONS = {
    "read": {"is_read": True},
    "unread": {"is_read": False},
    "important": {"is_important": True},
    "unimportant": {"is_important": False},
    "delete": None,
}


def _field_error(name: str, message: str) -> dict:
    return {"field": name, "message": message}


def normalize_address(address: str) -> str:
    return address.strip().lower()


class MessageService:
    """Message operations performed on behalf of an authenticated user."""

    def __init__(self, messages: MessageRepository, users: UserRepository):
        self.messages = messages
        self.users = users

    # Listing and reading

    def list_messages(
        self,
        user: User,
        label: str | None = None,
        page: int = 1,
        limit: int = 20,
        search: str | None = None,
    ) -> tuple[MailboxLabel, list[ResolvedMessage], Page]:
        """List one page of a mailbox view, newest first."""
        query = build_query(label, user.id, search)
        found, window = self.messages.find(query, Page(page=page, limit=limit))
        return query.label, self.resolve_many(found, user.id), window

    def count_messages(self, user: User, label: str | MailboxLabel) -> int:
        return self.messages.count(build_query(label, user.id))

    def count_unread(self, user: User) -> int:
        return self.messages.count(unread_query(user.id))

    def mailbox_counts(self, user: User) -> MailboxCounts:
        return MailboxCounts(
            inbox=self.count_messages(user, MailboxLabel.INBOX),
            unread=self.count_unread(user),
            sent=self.count_messages(user, MailboxLabel.SENT),
            drafts=self.count_messages(user, MailboxLabel.DRAFTS),
        )

    def get_message(self, user: User, message_id: int) -> ResolvedMessage:
        """Fetch a message, marking it read when a `to` recipient opens it."""
        message = self._load(message_id)
        if not access.can_read(message, user.id):
            raise AuthorizationError("Access denied")

        if access.should_mark_read(message, user.id):
            if self.messages.mark_read(message.id):
                logger.debug(f"Message {message.id} marked read by user {user.id}")
            message = self._load(message.id)

        return self.resolve(message, user.id)

    # Writing

    def send(self, user: User, request: ComposeRequest) -> ResolvedMessage:
        """Send a message, or store it as a draft."""
        subject = request.subject.strip()
        body = request.body.strip()

        errors = []
        if not request.is_draft and not request.to:
            errors.append(_field_error("to", "At least one recipient is required"))
        errors.extend(self._content_errors(subject, body))
        for index, attachment in enumerate(request.attachments):
            if attachment.size < 0:
                errors.append(_field_error(f"attachments.{index}.size", "Size cannot be negative"))
        if errors:
            raise ValidationError("Validation failed", errors)

        to_ids, cc_ids, bcc_ids = self.resolve_recipients(request.to, request.cc, request.bcc)

        now = datetime.now()
        message = Message(
            from_id=user.id,
            to_ids=to_ids,
            cc_ids=cc_ids,
            bcc_ids=bcc_ids,
            subject=subject,
            body=body,
            attachments=list(request.attachments),
            is_draft=request.is_draft,
            labels=[LABEL_DRAFT] if request.is_draft else [LABEL_SENT],
            created_at=now,
            updated_at=now,
        )
        stored = self._store(message)
        logger.info(
            f"User {user.id} {'saved draft' if request.is_draft else 'sent message'} {stored.id}"
        )
        return self.resolve(stored, user.id)

    def update(self, user: User, message_id: int, changes: dict) -> ResolvedMessage:
        """Change the read/important flags of a message."""
        unknown = sorted(set(changes) - MUTABLE_FLAGS)
        if unknown:
            raise ValidationError(
                "Validation failed",
                [_field_error(name, "Field cannot be updated") for name in unknown],
            )
        if not changes:
            raise ValidationError(
                "Validation failed",
                [_field_error("body", "No fields to update")],
            )

        message = self._load(message_id)
        if not access.can_write(message, user.id):
            raise AuthorizationError("Access denied")

        self.messages.update_flags(message.id, **changes)
        return self.resolve(self._load(message.id), user.id)

    def delete(self, user: User, message_id: int) -> None:
        """Move a message to the trash."""
        message = self._load(message_id)
        if not access.can_write(message, user.id):
            raise AuthorizationError("Access denied")

        self.messages.soft_delete(message.id)
        logger.info(f"User {user.id} moved message {message.id} to trash")

    def bulk_apply(self, user: User, message_ids: list[int], action: str) -> list[int]:
        """Apply one action to each message independently.

        A failure on one message does not stop the others, and nothing is
        rolled back. Returns the IDs that could not be changed.
        """
        if action not in BULK_ACTIONS:
            raise ValidationError(
                "Validation failed",
                [_field_error("action", f"Action must be one of: {', '.join(BULK_ACTIONS)}")],
            )

        changes = BULK_ACTIONS[action]
        failed = []
        for message_id in message_ids:
            try:
                if changes is None:
                    self.delete(user, message_id)
                else:
                    self.update(user, message_id, dict(changes))
            except (NotFoundError, AuthorizationError) as e:
                logger.info(f"Bulk {action} by user {user.id} skipped message {message_id}: {e.message}")
                failed.append(message_id)
        return failed

    def reply(self, user: User, message_id: int, body: str) -> ResolvedMessage:
        """Reply to the sender of a message."""
        body = body.strip()
        if not body:
            raise ValidationError("Validation failed", [_field_error("body", "Reply body is required")])

        original = self._load(message_id, "Original message not found")
        if not access.can_reply(original, user.id):
            raise AuthorizationError("Access denied")

        reply = derivation.derive_reply(original, user.id, body)
        self._check_subject(reply.subject)
        stored = self._store(reply)
        logger.info(f"User {user.id} replied to message {original.id} with {stored.id}")
        return self.resolve(stored, user.id)

    def forward(self, user: User, message_id: int, request: ForwardRequest) -> ResolvedMessage:
        """Forward a message to new recipients."""
        if not request.to:
            raise ValidationError(
                "Validation failed", [_field_error("to", "At least one recipient is required")]
            )

        original = self._load(message_id, "Original message not found")
        if not access.can_forward(original, user.id):
            raise AuthorizationError("Access denied")

        to_ids, cc_ids, bcc_ids = self.resolve_recipients(request.to, request.cc, request.bcc)

        body = (request.body or "").strip()
        if not body:
            quoted_users = self.users.get_by_ids({original.from_id, *original.to_ids})
            body = derivation.quote_for_forward(original, quoted_users)

        forward = derivation.derive_forward(original, user.id, to_ids, cc_ids, bcc_ids, body)
        self._check_subject(forward.subject)
        stored = self._store(forward)
        logger.info(f"User {user.id} forwarded message {original.id} as {stored.id}")
        return self.resolve(stored, user.id)

    # Helpers

    def resolve_recipients(
        self, to: list[str], cc: list[str], bcc: list[str]
    ) -> tuple[list[int], list[int], list[int]]:
        """Resolve recipient addresses to active user IDs, all or nothing."""
        to = [normalize_address(a) for a in to]
        cc = [normalize_address(a) for a in cc]
        bcc = [normalize_address(a) for a in bcc]

        wanted = {*to, *cc, *bcc}
        if "" in wanted:
            raise ValidationError(
                "Validation failed",
                [_field_error("recipients", "Recipient address cannot be empty")],
            )

        found = self.users.get_active_by_emails(wanted)
        missing = sorted(wanted - set(found))
        if missing:
            logger.info(f"Rejected message with unresolved recipients: {', '.join(missing)}")
            raise UnresolvedRecipientError(missing)

        return (
            [found[a].id for a in to],
            [found[a].id for a in cc],
            [found[a].id for a in bcc],
        )

    def resolve(self, message: Message, viewer_id: int) -> ResolvedMessage:
        return self.resolve_many([message], viewer_id)[0]

    def resolve_many(self, messages: list[Message], viewer_id: int) -> list[ResolvedMessage]:
        """Attach participant summaries, hiding bcc from everyone but the sender."""
        ids: set[int] = set()
        for message in messages:
            ids |= message.participant_ids()
        users = self.users.get_by_ids(ids)

        def summaries(user_ids: list[int]) -> list[UserSummary]:
            return [UserSummary.from_user(users[uid]) for uid in user_ids if uid in users]

        resolved = []
        for message in messages:
            sender = users.get(message.from_id)
            resolved.append(
                ResolvedMessage(
                    message=message,
                    sender=UserSummary.from_user(sender) if sender else None,
                    to=summaries(message.to_ids),
                    cc=summaries(message.cc_ids),
                    bcc=summaries(message.bcc_ids) if access.can_see_bcc(message, viewer_id) else [],
                )
            )
        return resolved

    def _load(self, message_id: int, not_found: str = "Message not found") -> Message:
        message = self.messages.get_by_id(message_id)
        if message is None:
            raise NotFoundError(not_found)
        return message

    def _store(self, message: Message) -> Message:
        message.id = self.messages.create(message)
        return message

    def _content_errors(self, subject: str, body: str) -> list[dict]:
        errors = []
        if not subject:
            errors.append(_field_error("subject", "Subject is required"))
        elif len(subject) > SUBJECT_MAX_LENGTH:
            errors.append(
                _field_error("subject", f"Subject cannot exceed {SUBJECT_MAX_LENGTH} characters")
            )
        if not body:
            errors.append(_field_error("body", "Email body is required"))
        return errors

    def _check_subject(self, subject: str) -> None:
        if len(subject) > SUBJECT_MAX_LENGTH:
            raise ValidationError(
                "Validation failed",
                [_field_error("subject", f"Subject cannot exceed {SUBJECT_MAX_LENGTH} characters")],
            )
