"""Signed-cookie sessions."""

from fastapi import Request, Response
from itsdangerous import BadSignature, URLSafeTimedSerializer

SESSION_SALT = "webmail.session"


class SessionManager:
    """Keeps the signed-in user ID in a signed, expiring cookie.

    The cookie carries nothing but the user ID. Everything else about the
    account is reloaded from the database on each request.
    """

    def __init__(self, secret: str, cookie_name: str, max_age: int = 86400):
        self.serializer = URLSafeTimedSerializer(secret, salt=SESSION_SALT)
        self.cookie_name = cookie_name
        self.max_age = max_age

    def sign_in(self, response: Response, user_id: int) -> None:
        token = self.serializer.dumps(user_id)
        response.set_cookie(
            key=self.cookie_name,
            value=token,
            max_age=self.max_age,
            httponly=True,
            samesite="lax",
        )

    def sign_out(self, response: Response) -> None:
        response.delete_cookie(self.cookie_name)

    def get_user_id(self, request: Request) -> int | None:
        """Return the user ID of a valid session cookie, or None."""
        token = request.cookies.get(self.cookie_name)
        if not token:
            return None
        try:
            # SignatureExpired is a BadSignature
            user_id = self.serializer.loads(token, max_age=self.max_age)
        except BadSignature:
            return None
        return user_id if isinstance(user_id, int) else None
