"""Message endpoints."""

from fastapi import APIRouter, Depends, Query, Request

from ...models import User
from ..dependencies import current_user, get_config, get_message_service
from ..schemas import (
    ComposeIn,
    DetailResponse,
    ForwardIn,
    MessageListResponse,
    MessageOut,
    MessageResponse,
    MessageUpdateIn,
    PaginationOut,
    ReplyIn,
)

router = APIRouter(prefix="/api/messages", tags=["messages"])


@router.get("", response_model=MessageListResponse)
def list_messages(
    request: Request,
    label: str | None = None,
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
    search: str | None = None,
    user: User = Depends(current_user),
) -> MessageListResponse:
    """List a mailbox view: inbox, sent, drafts, important or trash."""
    mailbox, messages, window = get_message_service(request).list_messages(
        user,
        label=label,
        page=page,
        limit=limit or get_config(request).mail.page_size,
        search=search,
    )
    return MessageListResponse(
        label=mailbox.value,
        messages=[MessageOut.from_resolved(m) for m in messages],
        pagination=PaginationOut.from_page(window),
    )


@router.get("/{message_id}", response_model=MessageResponse)
def get_message(request: Request, message_id: int, user: User = Depends(current_user)) -> MessageResponse:
    resolved = get_message_service(request).get_message(user, message_id)
    return MessageResponse(message=MessageOut.from_resolved(resolved))


@router.post("", response_model=MessageResponse, status_code=201)
def send_message(request: Request, payload: ComposeIn, user: User = Depends(current_user)) -> MessageResponse:
    """Send a message or save a draft."""
    resolved = get_message_service(request).send(user, payload.to_request())
    detail = "Draft saved successfully" if payload.is_draft else "Email sent successfully"
    return MessageResponse(message=MessageOut.from_resolved(resolved), detail=detail)


@router.put("/{message_id}", response_model=MessageResponse)
def update_message(
    request: Request,
    message_id: int,
    payload: MessageUpdateIn,
    user: User = Depends(current_user),
) -> MessageResponse:
    resolved = get_message_service(request).update(user, message_id, payload.changes())
    return MessageResponse(message=MessageOut.from_resolved(resolved), detail="Email updated successfully")


@router.delete("/{message_id}", response_model=DetailResponse)
def delete_message(request: Request, message_id: int, user: User = Depends(current_user)) -> DetailResponse:
    get_message_service(request).delete(user, message_id)
    return DetailResponse(detail="Email moved to trash successfully")


@router.post("/{message_id}/reply", response_model=MessageResponse, status_code=201)
def reply_to_message(
    request: Request,
    message_id: int,
    payload: ReplyIn,
    user: User = Depends(current_user),
) -> MessageResponse:
    resolved = get_message_service(request).reply(user, message_id, payload.body)
    return MessageResponse(message=MessageOut.from_resolved(resolved), detail="Reply sent successfully")


@router.post("/{message_id}/forward", response_model=MessageResponse, status_code=201)
def forward_message(
    request: Request,
    message_id: int,
    payload: ForwardIn,
    user: User = Depends(current_user),
) -> MessageResponse:
    resolved = get_message_service(request).forward(user, message_id, payload.to_request())
    return MessageResponse(message=MessageOut.from_resolved(resolved), detail="Email forwarded successfully")
