"""Data models for Webmail."""

from dataclasses import dataclass, field
from datetime import date, datetime
import json

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)

LABEL_INBOX = "inbox"
LABEL_SENT = "sent"
LABEL_DRAFT = "draft"
LABEL_TRASH = "trash"
LABEL_IMPORTANT = "important"
LABEL_SPAM = "spam"
MESSAGE_LABELS = (LABEL_INBOX, LABEL_SENT, LABEL_DRAFT, LABEL_TRASH, LABEL_IMPORTANT, LABEL_SPAM)

SUBJECT_MAX_LENGTH = 200


@dataclass
class Address:
    """Postal address attached to a user profile."""
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""

    def is_empty(self) -> bool:
        return not any((self.street, self.city, self.state, self.zip_code, self.country))

    def to_json(self) -> str:
        return json.dumps(
            {
                "street": self.street,
                "city": self.city,
                "state": self.state,
                "zipCode": self.zip_code,
                "country": self.country,
            }
        )

    @classmethod
    def from_json(cls, value: str | None) -> "Address | None":
        if not value:
            return None
        try:
            data = json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return None
        return cls(
            street=data.get("street", ""),
            city=data.get("city", ""),
            state=data.get("state", ""),
            zip_code=data.get("zipCode", ""),
            country=data.get("country", ""),
        )


@dataclass
class User:
    """Registered account."""
    id: int = 0
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    password_hash: str = ""
    role: str = ROLE_USER
    is_active: bool = True
    phone: str | None = None
    date_of_birth: date | None = None
    address: Address | None = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class UserSummary:
    """Display-ready view of a message participant."""
    id: int
    first_name: str
    last_name: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
        )


@dataclass
class Attachment:
    """Metadata of a file attached to a message."""
    filename: str
    original_name: str
    mimetype: str
    size: int
    storage_path: str

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "originalName": self.original_name,
            "mimetype": self.mimetype,
            "size": self.size,
            "storagePath": self.storage_path,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Attachment":
        return cls(
            filename=data.get("filename", ""),
            original_name=data.get("originalName", ""),
            mimetype=data.get("mimetype", ""),
            size=int(data.get("size", 0)),
            storage_path=data.get("storagePath", ""),
        )


@dataclass
class Message:
    """Message document exchanged between users."""
    id: int = 0
    from_id: int = 0
    to_ids: list[int] = field(default_factory=list)
    cc_ids: list[int] = field(default_factory=list)
    bcc_ids: list[int] = field(default_factory=list)
    subject: str = ""
    body: str = ""
    attachments: list[Attachment] = field(default_factory=list)
    is_read: bool = False
    is_important: bool = False
    is_draft: bool = False
    is_deleted: bool = False
    labels: list[str] = field(default_factory=list)
    reply_to_id: int | None = None
    forwarded_from_id: int | None = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def participant_ids(self) -> set[int]:
        """Return the ids of everyone referenced by the message."""
        return {self.from_id, *self.to_ids, *self.cc_ids, *self.bcc_ids}

    @staticmethod
    def ids_json(ids: list[int]) -> str:
        """Return a reference sequence as a JSON string."""
        return json.dumps(ids)

    def attachments_json(self) -> str:
        return json.dumps([a.to_dict() for a in self.attachments])

    def labels_json(self) -> str:
        return json.dumps(self.labels)

    @staticmethod
    def parse_json_list(value: str | None) -> list:
        """Parse a JSON encoded list column."""
        try:
            parsed = json.loads(value) if value else []
        except (json.JSONDecodeError, TypeError):
            return []
        return parsed if isinstance(parsed, list) else []


@dataclass
class ResolvedMessage:
    """Message with participant references resolved to summaries."""
    message: Message
    sender: UserSummary | None
    to: list[UserSummary]
    cc: list[UserSummary]
    bcc: list[UserSummary]
