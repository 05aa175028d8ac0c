"""Reply and forward derivation."""

from ..models import LABEL_SENT, Message, User

REPLY_PREFIX = "Re: "
FORWARD_PREFIX = "Fwd: "

FORWARD_TEMPLATE = (
    "--- Forwarded message ---\n"
    "From: {sender}\n"
    "To: {recipients}\n"
    "Subject: {subject}\n"
    "\n"
    "{body}"
)


def prefix_subject(subject: str, prefix: str) -> str:
    """Prefix a subject unless it already starts with exactly that prefix."""
    if subject.startswith(prefix):
        return subject
    return f"{prefix}{subject}"


def reply_subject(subject: str) -> str:
    return prefix_subject(subject, REPLY_PREFIX)


def forward_subject(subject: str) -> str:
    return prefix_subject(subject, FORWARD_PREFIX)


def quote_for_forward(original: Message, users: dict[int, User]) -> str:
    """Render the quoted block used as the body of a forward."""

    def address(user_id: int) -> str:
        user = users.get(user_id)
        return user.email if user else str(user_id)

    return FORWARD_TEMPLATE.format(
        sender=address(original.from_id),
        recipients=", ".join(address(uid) for uid in original.to_ids),
        subject=original.subject,
        body=original.body,
    ).strip()


def derive_reply(original: Message, user_id: int, body: str) -> Message:
    """Build a reply from `user_id` to the sender of `original`.

    The replying user is dropped from the carried-over cc list.
    """
    return Message(
        from_id=user_id,
        to_ids=[original.from_id],
        cc_ids=[uid for uid in original.cc_ids if uid != user_id],
        bcc_ids=[],
        subject=reply_subject(original.subject),
        body=body,
        reply_to_id=original.id,
        labels=[LABEL_SENT],
    )


def derive_forward(
    original: Message,
    user_id: int,
    to_ids: list[int],
    cc_ids: list[int],
    bcc_ids: list[int],
    body: str,
) -> Message:
    """Build a forward of `original` to already-resolved recipients."""
    return Message(
        from_id=user_id,
        to_ids=to_ids,
        cc_ids=cc_ids,
        bcc_ids=bcc_ids,
        subject=forward_subject(original.subject),
        body=body,
        forwarded_from_id=original.id,
        labels=[LABEL_SENT],
    )
