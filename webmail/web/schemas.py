"""Request and response bodies of the REST API."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..mail.query import Page
from ..mail.service import ComposeRequest, ForwardRequest
from ..models import Address, Attachment, ResolvedMessage, User, UserSummary
from ..users import ProfileUpdate, Registration


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaginationOut(BaseModel):
    current: int
    pages: int
    total: int

    @classmethod
    def from_page(cls, page: Page) -> "PaginationOut":
        return cls(current=page.page, pages=page.pages, total=page.total)


class UserSummaryOut(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str

    @classmethod
    def from_summary(cls, summary: UserSummary) -> "UserSummaryOut":
        return cls(
            id=summary.id,
            first_name=summary.first_name,
            last_name=summary.last_name,
            email=summary.email,
        )


class AttachmentModel(CamelModel):
    filename: str
    original_name: str
    mimetype: str
    size: int
    storage_path: str

    def to_attachment(self) -> Attachment:
        return Attachment(
            filename=self.filename,
            original_name=self.original_name,
            mimetype=self.mimetype,
            size=self.size,
            storage_path=self.storage_path,
        )


class MessageOut(CamelModel):
    id: int
    sender: UserSummaryOut | None = Field(default=None, alias="from")
    to: list[UserSummaryOut]
    cc: list[UserSummaryOut]
    bcc: list[UserSummaryOut]
    subject: str
    body: str
    attachments: list[AttachmentModel]
    is_read: bool
    is_important: bool
    is_draft: bool
    is_deleted: bool
    labels: list[str]
    reply_to: int | None = None
    forwarded_from: int | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_resolved(cls, resolved: ResolvedMessage) -> "MessageOut":
        message = resolved.message
        return cls(
            id=message.id,
            sender=UserSummaryOut.from_summary(resolved.sender) if resolved.sender else None,
            to=[UserSummaryOut.from_summary(s) for s in resolved.to],
            cc=[UserSummaryOut.from_summary(s) for s in resolved.cc],
            bcc=[UserSummaryOut.from_summary(s) for s in resolved.bcc],
            subject=message.subject,
            body=message.body,
            attachments=[
                AttachmentModel(
                    filename=a.filename,
                    original_name=a.original_name,
                    mimetype=a.mimetype,
                    size=a.size,
                    storage_path=a.storage_path,
                )
                for a in message.attachments
            ],
            is_read=message.is_read,
            is_important=message.is_important,
            is_draft=message.is_draft,
            is_deleted=message.is_deleted,
            labels=message.labels,
            reply_to=message.reply_to_id,
            forwarded_from=message.forwarded_from_id,
            created_at=message.created_at,
            updated_at=message.updated_at,
        )


class MessageResponse(BaseModel):
    message: MessageOut
    detail: str | None = None


class MessageListResponse(BaseModel):
    label: str
    messages: list[MessageOut]
    pagination: PaginationOut


class DetailResponse(BaseModel):
    detail: str


class ComposeIn(CamelModel):
    to: list[str] = []
    cc: list[str] = []
    bcc: list[str] = []
    subject: str
    body: str
    is_draft: bool = False
    attachments: list[AttachmentModel] = []

    def to_request(self) -> ComposeRequest:
        return ComposeRequest(
            to=self.to,
            cc=self.cc,
            bcc=self.bcc,
            subject=self.subject,
            body=self.body,
            is_draft=self.is_draft,
            attachments=[a.to_attachment() for a in self.attachments],
        )


class MessageUpdateIn(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    is_read: bool | None = None
    is_important: bool | None = None

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)


class ReplyIn(BaseModel):
    body: str


class ForwardIn(BaseModel):
    to: list[str]
    cc: list[str] = []
    bcc: list[str] = []
    body: str | None = None

    def to_request(self) -> ForwardRequest:
        return ForwardRequest(to=self.to, cc=self.cc, bcc=self.bcc, body=self.body)


class AddressModel(CamelModel):
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""

    def to_address(self) -> Address:
        return Address(
            street=self.street.strip(),
            city=self.city.strip(),
            state=self.state.strip(),
            zip_code=self.zip_code.strip(),
            country=self.country.strip(),
        )


class UserOut(CamelModel):
    id: int
    email: str
    first_name: str
    last_name: str
    role: str
    is_active: bool
    phone: str | None = None
    date_of_birth: date | None = None
    address: AddressModel | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        address = None
        if user.address is not None:
            address = AddressModel(
                street=user.address.street,
                city=user.address.city,
                state=user.address.state,
                zip_code=user.address.zip_code,
                country=user.address.country,
            )
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            is_active=user.is_active,
            phone=user.phone,
            date_of_birth=user.date_of_birth,
            address=address,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserResponse(BaseModel):
    user: UserOut
    detail: str | None = None


class UserListResponse(BaseModel):
    users: list[UserOut]
    pagination: PaginationOut


class ProfileIn(CamelModel):
    first_name: str
    last_name: str
    phone: str | None = None
    date_of_birth: date | None = None
    address: AddressModel | None = None

    def to_profile(self) -> ProfileUpdate:
        return ProfileUpdate(
            first_name=self.first_name,
            last_name=self.last_name,
            phone=self.phone,
            date_of_birth=self.date_of_birth,
            address=self.address.to_address() if self.address else None,
        )


class RegisterIn(ProfileIn):
    email: str
    password: str

    def to_registration(self) -> Registration:
        profile = self.to_profile()
        return Registration(
            first_name=profile.first_name,
            last_name=profile.last_name,
            phone=profile.phone,
            date_of_birth=profile.date_of_birth,
            address=profile.address,
            email=self.email,
            password=self.password,
        )


class LoginIn(BaseModel):
    email: str
    password: str


class RoleIn(BaseModel):
    role: str
