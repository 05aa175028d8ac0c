"""Web routes for the Webmail UI."""

import re
from datetime import date
from urllib.parse import urlencode

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from ..exceptions import AuthenticationError, AuthorizationError, ValidationError
from ..mail.query import MailboxLabel
from ..mail.service import BULK_ACTIONS, ComposeRequest, ForwardRequest
from ..models import ROLE_ADMIN, ROLE_USER, Address, User
from ..users import ProfileUpdate, Registration
from .dependencies import (
    current_user,
    get_config,
    get_message_service,
    get_session_manager,
    get_user_service,
)

router = APIRouter()

RECENT_LIMIT = 5


def parse_recipients(value: str) -> list[str]:
    """Split a comma or semicolon separated address field."""
    return [part.strip() for part in re.split(r"[,;]", value or "") if part.strip()]


def _signed_in(request: Request) -> User | None:
    try:
        return current_user(request)
    except AuthenticationError:
        return None


def _render(request: Request, template: str, context: dict, status_code: int = 200):
    templates = request.app.state.templates
    return templates.TemplateResponse(request, template, context, status_code=status_code)


def _error_messages(exc: ValidationError) -> list[str]:
    return [e["message"] for e in exc.errors] or [exc.message]


def _optional_date(value: str) -> date | None:
    value = (value or "").strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(
            "Validation failed", [{"field": "dateOfBirth", "message": "Please enter a valid date"}]
        ) from None


@router.get("/", response_class=HTMLResponse)
async def root(request: Request):
    """Redirect to the dashboard."""
    if _signed_in(request) is None:
        return RedirectResponse("/login", status_code=303)
    return RedirectResponse("/dashboard", status_code=303)


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request):
    """Render the login page."""
    if _signed_in(request) is not None:
        return RedirectResponse("/mailbox", status_code=303)
    return _render(request, "login.html", {"error": None})


@router.post("/login")
def login_submit(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
):
    """Process login form submission."""
    try:
        user = get_user_service(request).authenticate(email, password)
    except (AuthenticationError, AuthorizationError) as e:
        return _render(request, "login.html", {"error": e.message}, status_code=e.status_code)

    response = RedirectResponse("/mailbox", status_code=303)
    get_session_manager(request).sign_in(response, user.id)
    return response


@router.get("/register", response_class=HTMLResponse)
async def register_page(request: Request):
    return _render(request, "register.html", {"errors": [], "form": {}})


@router.post("/register")
def register_submit(
    request: Request,
    first_name: str = Form(""),
    last_name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
):
    form = {"first_name": first_name, "last_name": last_name, "email": email}
    if password != confirm_password:
        return _render(
            request, "register.html", {"errors": ["Passwords do not match"], "form": form}, 400
        )

    registration = Registration(
        first_name=first_name, last_name=last_name, email=email, password=password
    )
    try:
        user = get_user_service(request).register(registration)
    except ValidationError as e:
        return _render(request, "register.html", {"errors": _error_messages(e), "form": form}, 400)

    response = RedirectResponse("/mailbox", status_code=303)
    get_session_manager(request).sign_in(response, user.id)
    return response


@router.post("/logout")
async def logout(request: Request):
    """Log out the current user."""
    response = RedirectResponse("/login", status_code=303)
    get_session_manager(request).sign_out(response)
    return response


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(request: Request):
    """Show mailbox totals and the most recent inbox messages."""
    user = _signed_in(request)
    if user is None:
        return RedirectResponse("/login", status_code=303)

    service = get_message_service(request)
    _, recent, _ = service.list_messages(user, label=MailboxLabel.INBOX, limit=RECENT_LIMIT)
    user_count = None
    if user.is_admin:
        _, window = get_user_service(request).list_users(user, limit=1)
        user_count = window.total
    return _render(
        request,
        "dashboard.html",
        {
            "user": user,
            "counts": service.mailbox_counts(user),
            "recent": recent,
            "user_count": user_count,
        },
    )


def _mailbox_page(
    request: Request,
    user: User,
    label: str,
    page: int,
    search: str,
    errors: list[str] | None = None,
    status_code: int = 200,
):
    service = get_message_service(request)
    mailbox_label, messages, window = service.list_messages(
        user,
        label=label,
        page=max(page, 1),
        limit=get_config(request).mail.page_size,
        search=search,
    )
    return _render(
        request,
        "mailbox.html",
        {
            "user": user,
            "labels": list(MailboxLabel),
            "label": mailbox_label,
            "messages": messages,
            "page": window,
            "search": search,
            "unread": service.count_unread(user),
            "actions": list(BULK_ACTIONS),
            "errors": errors or [],
        },
        status_code,
    )


@router.get("/mailbox", response_class=HTMLResponse)
def mailbox(request: Request, label: str = "inbox", page: int = 1, search: str = ""):
    """Display one page of a mailbox view."""
    user = _signed_in(request)
    if user is None:
        return RedirectResponse("/login", status_code=303)
    return _mailbox_page(request, user, label, page, search)


@router.post("/mailbox/bulk")
def mailbox_bulk(
    request: Request,
    action: str = Form(...),
    ids: list[int] = Form(default=[]),
    label: str = Form("inbox"),
    page: int = Form(1),
    search: str = Form(""),
):
    """Apply an action to each selected message."""
    user = _signed_in(request)
    if user is None:
        return RedirectResponse("/login", status_code=303)

    try:
        failed = get_message_service(request).bulk_apply(user, ids, action)
    except ValidationError as e:
        return _mailbox_page(request, user, label, page, search, _error_messages(e), 400)
    if failed:
        errors = [f"Could not update message {message_id}" for message_id in failed]
        return _mailbox_page(request, user, label, page, search, errors)

    query = urlencode({"label": label, "page": page, "search": search})
    return RedirectResponse(f"/mailbox?{query}", status_code=303)


@router.get("/messages/{message_id}", response_class=HTMLResponse)
def message_detail(request: Request, message_id: int):
    """Display a single message."""
    user = _signed_in(request)
    if user is None:
        return RedirectResponse("/login", status_code=303)

    resolved = get_message_service(request).get_message(user, message_id)
    return _render(request, "message_detail.html", {"user": user, "item": resolved, "errors": []})


@router.post("/messages/{message_id}/important")
def set_important(request: Request, message_id: int, important: bool = Form(...)):
    user = _signed_in(request)
    if user is None:
        return RedirectResponse("/login", status_code=303)

    get_message_service(request).update(user, message_id, {"is_important": important})
    return RedirectResponse(f"/messages/{message_id}", status_code=303)


@router.post("/messages/{message_id}/delete")
def delete_message(request: Request, message_id: int):
    user = _signed_in(request)
    if user is None:
        return RedirectResponse("/login", status_code=303)

    get_message_service(request).delete(user, message_id)
    return RedirectResponse("/mailbox", status_code=303)


@router.post("/messages/{message_id}/reply")
def reply_message(request: Request, message_id: int, body: str = Form("")):
    user = _signed_in(request)
    if user is None:
        return RedirectResponse("/login", status_code=303)

    service = get_message_service(request)
    try:
        reply = service.reply(user, message_id, body)
    except ValidationError as e:
        resolved = service.get_message(user, message_id)
        context = {"user": user, "item": resolved, "errors": _error_messages(e)}
        return _render(request, "message_detail.html", context, 400)
    return RedirectResponse(f"/messages/{reply.message.id}", status_code=303)


@router.post("/messages/{message_id}/forward")
def forward_message(
    request: Request,
    message_id: int,
    to: str = Form(""),
    cc: str = Form(""),
    body: str = Form(""),
):
    user = _signed_in(request)
    if user is None:
        return RedirectResponse("/login", status_code=303)

    service = get_message_service(request)
    forward = ForwardRequest(to=parse_recipients(to), cc=parse_recipients(cc), body=body)
    try:
        forwarded = service.forward(user, message_id, forward)
    except ValidationError as e:
        resolved = service.get_message(user, message_id)
        context = {"user": user, "item": resolved, "errors": _error_messages(e)}
        return _render(request, "message_detail.html", context, 400)
    return RedirectResponse(f"/messages/{forwarded.message.id}", status_code=303)


@router.get("/compose", response_class=HTMLResponse)
async def compose_page(request: Request):
    user = _signed_in(request)
    if user is None:
        return RedirectResponse("/login", status_code=303)
    return _render(request, "compose.html", {"user": user, "errors": [], "form": {}})


@router.post("/compose")
def compose_submit(
    request: Request,
    to: str = Form(""),
    cc: str = Form(""),
    bcc: str = Form(""),
    subject: str = Form(""),
    body: str = Form(""),
    action: str = Form("send"),
):
    """Send the composed message, or save it as a draft."""
    user = _signed_in(request)
    if user is None:
        return RedirectResponse("/login", status_code=303)

    is_draft = action == "draft"
    compose = ComposeRequest(
        to=parse_recipients(to),
        cc=parse_recipients(cc),
        bcc=parse_recipients(bcc),
        subject=subject,
        body=body,
        is_draft=is_draft,
    )
    try:
        get_message_service(request).send(user, compose)
    except ValidationError as e:
        form = {"to": to, "cc": cc, "bcc": bcc, "subject": subject, "body": body}
        return _render(
            request, "compose.html", {"user": user, "errors": _error_messages(e), "form": form}, 400
        )

    target = MailboxLabel.DRAFTS if is_draft else MailboxLabel.SENT
    return RedirectResponse(f"/mailbox?label={target.value}", status_code=303)


@router.get("/profile", response_class=HTMLResponse)
async def profile_page(request: Request):
    user = _signed_in(request)
    if user is None:
        return RedirectResponse("/login", status_code=303)
    return _render(request, "profile.html", {"user": user, "errors": [], "saved": False})


@router.post("/profile")
def profile_submit(
    request: Request,
    first_name: str = Form(""),
    last_name: str = Form(""),
    phone: str = Form(""),
    date_of_birth: str = Form(""),
    street: str = Form(""),
    city: str = Form(""),
    state: str = Form(""),
    zip_code: str = Form(""),
    country: str = Form(""),
):
    user = _signed_in(request)
    if user is None:
        return RedirectResponse("/login", status_code=303)

    try:
        profile = ProfileUpdate(
            first_name=first_name,
            last_name=last_name,
            phone=phone or None,
            date_of_birth=_optional_date(date_of_birth),
            address=Address(
                street=street.strip(),
                city=city.strip(),
                state=state.strip(),
                zip_code=zip_code.strip(),
                country=country.strip(),
            ),
        )
        updated = get_user_service(request).update_profile(user, user.id, profile)
    except ValidationError as e:
        return _render(
            request, "profile.html", {"user": user, "errors": _error_messages(e), "saved": False}, 400
        )
    return _render(request, "profile.html", {"user": updated, "errors": [], "saved": True})


@router.get("/admin/users", response_class=HTMLResponse)
def user_management(request: Request, page: int = 1, search: str = ""):
    """Display the account list for administrators."""
    user = _signed_in(request)
    if user is None:
        return RedirectResponse("/login", status_code=303)

    users, window = get_user_service(request).list_users(
        user,
        page=max(page, 1),
        limit=get_config(request).mail.user_page_size,
        search=search,
    )
    return _render(
        request,
        "users.html",
        {"user": user, "users": users, "page": window, "search": search},
    )


@router.post("/admin/users/{user_id}/role")
def toggle_role(request: Request, user_id: int):
    user = _signed_in(request)
    if user is None:
        return RedirectResponse("/login", status_code=303)

    service = get_user_service(request)
    target = service.get_user(user, user_id)
    service.set_role(user, user_id, ROLE_USER if target.is_admin else ROLE_ADMIN)
    return RedirectResponse("/admin/users", status_code=303)


@router.post("/admin/users/{user_id}/activate")
def activate_user(request: Request, user_id: int):
    user = _signed_in(request)
    if user is None:
        return RedirectResponse("/login", status_code=303)

    get_user_service(request).activate(user, user_id)
    return RedirectResponse("/admin/users", status_code=303)


@router.post("/admin/users/{user_id}/deactivate")
def deactivate_user(request: Request, user_id: int):
    user = _signed_in(request)
    if user is None:
        return RedirectResponse("/login", status_code=303)

    get_user_service(request).deactivate(user, user_id)
    return RedirectResponse("/admin/users", status_code=303)
