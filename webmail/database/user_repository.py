"""User repository for database operations."""

import hashlib
import secrets
from datetime import date, datetime

from ..models import ROLE_USER, Address, User
from .connection import Database


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


class UserRepository:
    """Repository for user CRUD operations and directory lookups."""

    HASH_ITERATIONS = 100000

    def __init__(self, db: Database):
        self.db = db

    def create(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: str = ROLE_USER,
        phone: str | None = None,
        date_of_birth: date | None = None,
        address: Address | None = None,
    ) -> int:
        """Create a new user and return their ID."""
        password_hash = self._hash_password(password)
        now = datetime.now().isoformat()
        query = """
            INSERT INTO users (email, first_name, last_name, password_hash, role,
                               is_active, phone, date_of_birth, address, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, 1, ?, ?, ?, ?, ?)
        """
        cursor = self.db.execute(
            query,
            (
                email.lower(),
                first_name,
                last_name,
                password_hash,
                role,
                phone,
                date_of_birth.isoformat() if date_of_birth else None,
                address.to_json() if address and not address.is_empty() else None,
                now,
                now,
            ),
        )
        return cursor.lastrowid

    def get_by_email(self, email: str) -> User | None:
        """Get a user by their email address."""
        query = "SELECT * FROM users WHERE email = ?"
        row = self.db.fetchone(query, (email.lower(),))
        if row is None:
            return None
        return self._row_to_user(row)

    def get_by_id(self, user_id: int) -> User | None:
        """Get a user by their ID."""
        query = "SELECT * FROM users WHERE id = ?"
        row = self.db.fetchone(query, (user_id,))
        if row is None:
            return None
        return self._row_to_user(row)

    def get_by_ids(self, user_ids: set[int]) -> dict[int, User]:
        """Get users keyed by ID. Unknown IDs are absent from the result."""
        if not user_ids:
            return {}
        ids = sorted(user_ids)
        query = f"SELECT * FROM users WHERE id IN ({_placeholders(len(ids))})"
        rows = self.db.fetchall(query, tuple(ids))
        return {row["id"]: self._row_to_user(row) for row in rows}

    def get_active_by_emails(self, emails: set[str]) -> dict[str, User]:
        """Get active users keyed by lower-cased email address."""
        if not emails:
            return {}
        addresses = sorted(e.lower() for e in emails)
        query = (
            f"SELECT * FROM users WHERE is_active = 1 "
            f"AND email IN ({_placeholders(len(addresses))})"
        )
        rows = self.db.fetchall(query, tuple(addresses))
        return {row["email"]: self._row_to_user(row) for row in rows}

    def search(self, search: str = "", limit: int = 10, offset: int = 0) -> list[User]:
        """List users matching a name/email search, newest first."""
        where, params = self._search_clause(search)
        query = f"SELECT * FROM users{where} ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?"
        rows = self.db.fetchall(query, params + (limit, offset))
        return [self._row_to_user(row) for row in rows]

    def count(self, search: str = "") -> int:
        """Count users matching a name/email search."""
        where, params = self._search_clause(search)
        row = self.db.fetchone(f"SELECT COUNT(*) as count FROM users{where}", params)
        return row["count"] if row else 0

    def verify_password(self, user: User, password: str) -> bool:
        """Verify a password against the stored hash."""
        try:
            salt, stored_hash = user.password_hash.split("$")
            computed_hash = hashlib.pbkdf2_hmac(
                "sha256",
                password.encode(),
                salt.encode(),
                self.HASH_ITERATIONS,
            ).hex()
            return secrets.compare_digest(computed_hash, stored_hash)
        except (ValueError, AttributeError):
            return False

    def update_profile(
        self,
        user_id: int,
        first_name: str,
        last_name: str,
        phone: str | None,
        date_of_birth: date | None,
        address: Address | None,
    ) -> bool:
        """Overwrite the editable profile fields of a user."""
        query = """
            UPDATE users SET first_name = ?, last_name = ?, phone = ?, date_of_birth = ?,
                             address = ?, updated_at = ?
            WHERE id = ?
        """
        cursor = self.db.execute(
            query,
            (
                first_name,
                last_name,
                phone,
                date_of_birth.isoformat() if date_of_birth else None,
                address.to_json() if address and not address.is_empty() else None,
                datetime.now().isoformat(),
                user_id,
            ),
        )
        return cursor.rowcount > 0

    def set_role(self, user_id: int, role: str) -> bool:
        """Change a user's role."""
        query = "UPDATE users SET role = ?, updated_at = ? WHERE id = ?"
        cursor = self.db.execute(query, (role, datetime.now().isoformat(), user_id))
        return cursor.rowcount > 0

    def set_active(self, user_id: int, is_active: bool) -> bool:
        """Activate or deactivate a user."""
        query = "UPDATE users SET is_active = ?, updated_at = ? WHERE id = ?"
        cursor = self.db.execute(query, (int(is_active), datetime.now().isoformat(), user_id))
        return cursor.rowcount > 0

    def exists(self, email: str) -> bool:
        """Check if a user with the given email exists."""
        query = "SELECT 1 FROM users WHERE email = ? LIMIT 1"
        row = self.db.fetchone(query, (email.lower(),))
        return row is not None

    def _search_clause(self, search: str) -> tuple[str, tuple]:
        """Build the WHERE clause for a case-insensitive user search."""
        term = search.strip().casefold()
        if not term:
            return "", ()
        clause = (
            " WHERE instr(casefold(first_name), ?) > 0"
            " OR instr(casefold(last_name), ?) > 0"
            " OR instr(casefold(email), ?) > 0"
        )
        return clause, (term, term, term)

    def _hash_password(self, password: str) -> str:
        """Hash a password with a random salt using PBKDF2."""
        salt = secrets.token_hex(16)
        hash_value = hashlib.pbkdf2_hmac(
            "sha256",
            password.encode(),
            salt.encode(),
            self.HASH_ITERATIONS,
        ).hex()
        return f"{salt}${hash_value}"

    def _row_to_user(self, row) -> User:
        """Convert a database row to a User object."""
        date_of_birth = row["date_of_birth"]
        if isinstance(date_of_birth, str):
            date_of_birth = date.fromisoformat(date_of_birth)

        return User(
            id=row["id"],
            email=row["email"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            password_hash=row["password_hash"],
            role=row["role"],
            is_active=bool(row["is_active"]),
            phone=row["phone"],
            date_of_birth=date_of_birth,
            address=Address.from_json(row["address"]),
            created_at=_parse_datetime(row["created_at"]),
            updated_at=_parse_datetime(row["updated_at"]),
        )


def _parse_datetime(value) -> datetime:
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value
