"""Message repository for database operations."""

import json
from datetime import datetime

from ..mail.query import MessageFilter, MessageQuery, Page, ParticipantRole
from ..models import LABEL_TRASH, Attachment, Message
from .connection import Database

_IN_TO = "EXISTS (SELECT 1 FROM json_each(messages.to_ids) WHERE json_each.value = ?)"
_IN_CC = "EXISTS (SELECT 1 FROM json_each(messages.cc_ids) WHERE json_each.value = ?)"
_IN_BCC = "EXISTS (SELECT 1 FROM json_each(messages.bcc_ids) WHERE json_each.value = ?)"

_SORT_FIELDS = {"created_at", "updated_at"}

# Fields a caller may change through update_flags().
MUTABLE_FLAGS = {"is_read", "is_important"}


class MessageRepository:
    """Repository for message CRUD operations."""

    def __init__(self, db: Database):
        self.db = db

    def create(self, message: Message) -> int:
        """Create a new message and return its ID."""
        query = """
            INSERT INTO messages (from_id, to_ids, cc_ids, bcc_ids, subject, body, attachments,
                                  is_read, is_important, is_draft, is_deleted, labels,
                                  reply_to_id, forwarded_from_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """
        cursor = self.db.execute(
            query,
            (
                message.from_id,
                Message.ids_json(message.to_ids),
                Message.ids_json(message.cc_ids),
                Message.ids_json(message.bcc_ids),
                message.subject,
                message.body,
                message.attachments_json(),
                int(message.is_read),
                int(message.is_important),
                int(message.is_draft),
                int(message.is_deleted),
                message.labels_json(),
                message.reply_to_id,
                message.forwarded_from_id,
                message.created_at.isoformat(),
                message.updated_at.isoformat(),
            ),
        )
        return cursor.lastrowid

    def get_by_id(self, message_id: int) -> Message | None:
        """Get a message by its ID."""
        query = "SELECT * FROM messages WHERE id = ?"
        row = self.db.fetchone(query, (message_id,))
        if row is None:
            return None
        return self._row_to_message(row)

    def find(self, message_query: MessageQuery, page: Page) -> tuple[list[Message], Page]:
        """Return one page of messages matching a query, and the page with its total."""
        where, params = self._compile_filter(message_query.filter)
        if message_query.sort_field not in _SORT_FIELDS:
            raise ValueError(f"Unsupported sort field: {message_query.sort_field}")
        direction = "DESC" if message_query.descending else "ASC"

        count_row = self.db.fetchone(f"SELECT COUNT(*) as count FROM messages WHERE {where}", params)
        total = count_row["count"] if count_row else 0

        query = (
            f"SELECT * FROM messages WHERE {where} "
            f"ORDER BY {message_query.sort_field} {direction}, id {direction} "
            f"LIMIT ? OFFSET ?"
        )
        rows = self.db.fetchall(query, params + (page.limit, page.offset))
        return [self._row_to_message(row) for row in rows], page.with_total(total)

    def count(self, message_query: MessageQuery) -> int:
        """Count the messages matching a query."""
        where, params = self._compile_filter(message_query.filter)
        row = self.db.fetchone(f"SELECT COUNT(*) as count FROM messages WHERE {where}", params)
        return row["count"] if row else 0

    def update_flags(self, message_id: int, **flags: bool) -> bool:
        """Set view-state flags on a message."""
        unknown = set(flags) - MUTABLE_FLAGS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if not flags:
            return False

        names = sorted(flags)
        assignments = ", ".join(f"{name} = ?" for name in names)
        query = f"UPDATE messages SET {assignments}, updated_at = ? WHERE id = ?"
        params = tuple(int(flags[name]) for name in names) + (datetime.now().isoformat(), message_id)
        cursor = self.db.execute(query, params)
        return cursor.rowcount > 0

    def mark_read(self, message_id: int) -> bool:
        """Mark a message read. Returns False when it already was."""
        query = "UPDATE messages SET is_read = 1, updated_at = ? WHERE id = ? AND is_read = 0"
        cursor = self.db.execute(query, (datetime.now().isoformat(), message_id))
        return cursor.rowcount > 0

    def soft_delete(self, message_id: int) -> bool:
        """Move a message to the trash."""
        query = "UPDATE messages SET is_deleted = 1, labels = ?, updated_at = ? WHERE id = ?"
        cursor = self.db.execute(
            query,
            (json.dumps([LABEL_TRASH]), datetime.now().isoformat(), message_id),
        )
        return cursor.rowcount > 0

    def _compile_filter(self, message_filter: MessageFilter) -> tuple[str, tuple]:
        """Translate a structured filter into a WHERE clause and parameters."""
        uid = message_filter.user_id
        clauses = ["is_deleted = ?"]
        params: list = [int(message_filter.is_deleted)]

        if message_filter.role is ParticipantRole.RECIPIENT:
            clauses.append(_IN_TO)
            params.append(uid)
        elif message_filter.role is ParticipantRole.SENDER:
            clauses.append("from_id = ?")
            params.append(uid)
        else:
            clauses.append(f"(from_id = ? OR {_IN_TO} OR {_IN_CC} OR {_IN_BCC})")
            params.extend([uid, uid, uid, uid])

        if message_filter.is_draft is not None:
            clauses.append("is_draft = ?")
            params.append(int(message_filter.is_draft))

        if message_filter.is_important is not None:
            clauses.append("is_important = ?")
            params.append(int(message_filter.is_important))

        if message_filter.is_read is not None:
            clauses.append("is_read = ?")
            params.append(int(message_filter.is_read))

        if message_filter.search:
            term = message_filter.search.casefold()
            clauses.append("(instr(casefold(subject), ?) > 0 OR instr(casefold(body), ?) > 0)")
            params.extend([term, term])

        return " AND ".join(clauses), tuple(params)

    def _row_to_message(self, row) -> Message:
        """Convert a database row to a Message object."""
        created_at = row["created_at"]
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        updated_at = row["updated_at"]
        if isinstance(updated_at, str):
            updated_at = datetime.fromisoformat(updated_at)

        return Message(
            id=row["id"],
            from_id=row["from_id"],
            to_ids=Message.parse_json_list(row["to_ids"]),
            cc_ids=Message.parse_json_list(row["cc_ids"]),
            bcc_ids=Message.parse_json_list(row["bcc_ids"]),
            subject=row["subject"],
            body=row["body"],
            attachments=[Attachment.from_dict(a) for a in Message.parse_json_list(row["attachments"])],
            is_read=bool(row["is_read"]),
            is_important=bool(row["is_important"]),
            is_draft=bool(row["is_draft"]),
            is_deleted=bool(row["is_deleted"]),
            labels=Message.parse_json_list(row["labels"]),
            reply_to_id=row["reply_to_id"],
            forwarded_from_id=row["forwarded_from_id"],
            created_at=created_at,
            updated_at=updated_at,
        )
