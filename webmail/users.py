"""Account operations: registration, authentication, profiles and administration."""

import logging
import re
import sqlite3
from dataclasses import dataclass
from datetime import date

from .database.user_repository import UserRepository
from .exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .mail.query import Page
from .models import ROLE_ADMIN, ROLES, Address, User

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")
MIN_PASSWORD_LENGTH = 6


@dataclass
class ProfileUpdate:
    """Editable profile fields."""
    first_name: str
    last_name: str
    phone: str | None = None
    date_of_birth: date | None = None
    address: Address | None = None


@dataclass
class Registration(ProfileUpdate):
    """Fields submitted when creating an account."""
    email: str = ""
    password: str = ""


def _profile_errors(profile: ProfileUpdate) -> list[dict]:
    errors = []
    if not profile.first_name.strip():
        errors.append({"field": "firstName", "message": "First name is required"})
    if not profile.last_name.strip():
        errors.append({"field": "lastName", "message": "Last name is required"})
    if profile.phone and not PHONE_PATTERN.match(profile.phone.strip()):
        errors.append({"field": "phone", "message": "Please enter a valid phone number"})
    if profile.date_of_birth and profile.date_of_birth >= date.today():
        errors.append({"field": "dateOfBirth", "message": "Date of birth must be in the past"})
    return errors


def _duplicate_email() -> ValidationError:
    return ValidationError(
        "User already exists",
        [{"field": "email", "message": "An account with this email already exists"}],
    )


class UserService:
    """Account operations, with admin checks on management actions."""

    def __init__(self, users: UserRepository):
        self.users = users

    def register(self, registration: Registration) -> User:
        """Create a new account with the `user` role."""
        email = registration.email.strip().lower()
        errors = _profile_errors(registration)
        if not EMAIL_PATTERN.match(email):
            errors.append({"field": "email", "message": "Please enter a valid email"})
        if len(registration.password) < MIN_PASSWORD_LENGTH:
            errors.append(
                {
                    "field": "password",
                    "message": f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                }
            )
        if errors:
            raise ValidationError("Validation failed", errors)

        if self.users.exists(email):
            raise _duplicate_email()

        try:
            user_id = self.users.create(
                email=email,
                password=registration.password,
                first_name=registration.first_name.strip(),
                last_name=registration.last_name.strip(),
                phone=(registration.phone or "").strip() or None,
                date_of_birth=registration.date_of_birth,
                address=registration.address,
            )
        except sqlite3.IntegrityError:
            raise _duplicate_email() from None
        logger.info(f"Registered user {user_id} ({email})")
        return self.users.get_by_id(user_id)

    def authenticate(self, email: str, password: str) -> User:
        """Check credentials and return the matching active user."""
        user = self.users.get_by_email(email.strip())
        if not user or not self.users.verify_password(user, password):
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthorizationError("Account is deactivated")
        return user

    def get_user(self, actor: User, user_id: int) -> User:
        """Return a user's account. Users see themselves; admins see anyone."""
        self._require_self_or_admin(actor, user_id)
        return self._load(user_id)

    def update_profile(self, actor: User, user_id: int, profile: ProfileUpdate) -> User:
        self._require_self_or_admin(actor, user_id)
        self._load(user_id)

        errors = _profile_errors(profile)
        if errors:
            raise ValidationError("Validation failed", errors)

        self.users.update_profile(
            user_id,
            first_name=profile.first_name.strip(),
            last_name=profile.last_name.strip(),
            phone=(profile.phone or "").strip() or None,
            date_of_birth=profile.date_of_birth,
            address=profile.address,
        )
        return self._load(user_id)

    def list_users(
        self, actor: User, page: int = 1, limit: int = 10, search: str = ""
    ) -> tuple[list[User], Page]:
        """List accounts for administration, newest first."""
        self._require_admin(actor)
        window = Page(page=page, limit=limit)
        users = self.users.search(search, limit=window.limit, offset=window.offset)
        return users, window.with_total(self.users.count(search))

    def set_role(self, actor: User, user_id: int, role: str) -> User:
        self._require_admin(actor)
        if role not in ROLES:
            raise ValidationError(
                "Validation failed",
                [{"field": "role", "message": f"Role must be one of: {', '.join(ROLES)}"}],
            )
        self._load(user_id)
        if actor.id == user_id and role != ROLE_ADMIN:
            raise ValidationError(
                "Validation failed",
                [{"field": "role", "message": "You cannot remove your own admin role"}],
            )

        self.users.set_role(user_id, role)
        logger.info(f"Admin {actor.id} set role of user {user_id} to {role}")
        return self._load(user_id)

    def activate(self, actor: User, user_id: int) -> User:
        self._require_admin(actor)
        self._load(user_id)
        self.users.set_active(user_id, True)
        logger.info(f"Admin {actor.id} activated user {user_id}")
        return self._load(user_id)

    def deactivate(self, actor: User, user_id: int) -> User:
        """Deactivate an account. Accounts are never removed."""
        self._require_admin(actor)
        self._load(user_id)
        if actor.id == user_id:
            raise ValidationError(
                "Validation failed",
                [{"field": "id", "message": "You cannot deactivate your own account"}],
            )

        self.users.set_active(user_id, False)
        logger.info(f"Admin {actor.id} deactivated user {user_id}")
        return self._load(user_id)

    def ensure_admin(self, email: str, password: str, first_name: str, last_name: str) -> User:
        """Create the bootstrap admin account if it does not exist yet."""
        user = self.users.get_by_email(email)
        if user is None:
            user_id = self.users.create(
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
                role=ROLE_ADMIN,
            )
            logger.info(f"Created admin user: {email}")
            return self.users.get_by_id(user_id)

        logger.info(f"Admin user already exists: {email}")
        return user

    def _load(self, user_id: int) -> User:
        user = self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _require_admin(self, actor: User) -> None:
        if not actor.is_admin:
            raise AuthorizationError("Admin access required")

    def _require_self_or_admin(self, actor: User, user_id: int) -> None:
        if actor.id != user_id and not actor.is_admin:
            raise AuthorizationError("Access denied")

