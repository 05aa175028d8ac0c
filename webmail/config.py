"""Configuration loading and validation for Webmail."""

from dataclasses import dataclass, field
from pathlib import Path
import json


@dataclass
class WebConfig:
    """Web server configuration."""
    host: str = "0.0.0.0"
    port: int = 8080
    session_secret: str = "change-this-to-32-byte-secret!!"
    session_name: str = "webmail_session"
    session_max_age: int = 86400  # 24 hours

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass
class DatabaseConfig:
    """Database configuration."""
    path: str = "./data/webmail.db"


@dataclass
class AdminConfig:
    """Bootstrap admin account configuration."""
    email: str = "admin@webmail.local"
    password: str = "changeme"
    first_name: str = "System"
    last_name: str = "Administrator"


@dataclass
class MailConfig:
    """Mailbox listing defaults."""
    page_size: int = 20
    user_page_size: int = 10


@dataclass
class Config:
    """Main application configuration."""
    web: WebConfig = field(default_factory=WebConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    admin: AdminConfig = field(default_factory=AdminConfig)
    mail: MailConfig = field(default_factory=MailConfig)

    @classmethod
    def load(cls, path: str) -> "Config":
        """Load configuration from a JSON file."""
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(config_path, "r") as f:
            data = json.load(f)

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "Config":
        """Create Config from a dictionary."""
        config = cls(
            web=WebConfig(**data.get("web", {})),
            database=DatabaseConfig(**data.get("database", {})),
            admin=AdminConfig(**data.get("admin", {})),
            mail=MailConfig(**data.get("mail", {})),
        )

        config.validate()
        return config

    def validate(self) -> None:
        """Validate the configuration."""
        errors = []

        if self.web.port <= 0 or self.web.port > 65535:
            errors.append("Web port must be between 1 and 65535")

        if len(self.web.session_secret) < 16:
            errors.append("Session secret must be at least 16 characters")

        if self.web.session_max_age <= 0:
            errors.append("Session max age must be positive")

        if not self.database.path:
            errors.append("Database path is required")

        if not self.admin.email or "@" not in self.admin.email:
            errors.append("Admin email is required")

        if len(self.admin.password) < 6:
            errors.append("Admin password must be at least 6 characters")

        if self.mail.page_size < 1 or self.mail.user_page_size < 1:
            errors.append("Page sizes must be at least 1")

        if errors:
            raise ValueError("Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors))
