"""Unit tests for configuration module."""

import json

import pytest

from webmail.config import Config


class TestConfig:
    """Test suite for Config."""

    def test_default_config(self) -> None:
        config = Config()

        assert config.web.port == 8080
        assert config.web.address == "0.0.0.0:8080"
        assert config.database.path == "./data/webmail.db"
        assert config.mail.page_size == 20
        assert config.mail.user_page_size == 10

    def test_load_from_file(self, tmp_path) -> None:
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps(
                {
                    "web": {"port": 9000, "session_secret": "another-long-secret"},
                    "database": {"path": str(tmp_path / "mail.db")},
                    "admin": {"email": "root@example.com", "password": "s3cret!"},
                    "mail": {"page_size": 50},
                }
            )
        )

        config = Config.load(str(path))

        assert config.web.port == 9000
        assert config.admin.email == "root@example.com"
        assert config.mail.page_size == 50
        assert config.mail.user_page_size == 10

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            Config.load(str(tmp_path / "missing.json"))

    def test_validation_collects_every_error(self, tmp_path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"web": {"port": 70000}, "admin": {"password": "123"}}))

        with pytest.raises(ValueError) as excinfo:
            Config.load(str(path))

        message = str(excinfo.value)
        assert "Web port must be between 1 and 65535" in message
        assert "Admin password must be at least 6 characters" in message

    def test_unknown_keys_are_rejected(self, tmp_path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"web": {"colour": "blue"}}))

        with pytest.raises(TypeError):
            Config.load(str(path))
