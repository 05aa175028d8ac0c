"""Unit tests for UserService."""

from datetime import date, timedelta

import pytest

from webmail.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from webmail.models import Address
from webmail.users import ProfileUpdate, Registration


def registration(**overrides) -> Registration:
    fields = {
        "first_name": "Erin",
        "last_name": "Example",
        "email": "Erin@Example.com",
        "password": "hunter22",
    }
    fields.update(overrides)
    return Registration(**fields)


class TestRegistration:
    """Creating accounts."""

    def test_register(self, user_service) -> None:
        user = user_service.register(registration())

        assert user.email == "erin@example.com"
        assert user.role == "user"
        assert user.is_active is True
        assert user.password_hash != "hunter22"

    def test_duplicate_email(self, user_service) -> None:
        user_service.register(registration())

        with pytest.raises(ValidationError) as excinfo:
            user_service.register(registration(email="erin@example.com"))

        assert excinfo.value.message == "User already exists"

    def test_duplicate_email_racing_the_existence_check(self, user_service, monkeypatch) -> None:
        user_service.register(registration())
        monkeypatch.setattr(user_service.users, "exists", lambda email: False)

        with pytest.raises(ValidationError) as excinfo:
            user_service.register(registration())

        assert excinfo.value.message == "User already exists"

    def test_invalid_fields(self, user_service) -> None:
        with pytest.raises(ValidationError) as excinfo:
            user_service.register(
                registration(first_name=" ", email="not-an-email", password="123", phone="abc")
            )

        fields = {e["field"] for e in excinfo.value.errors}
        assert fields == {"firstName", "email", "password", "phone"}


class TestAuthenticate:
    """Checking credentials."""

    def test_valid_credentials(self, user_service, alice, password) -> None:
        assert user_service.authenticate("ALICE@example.com", password).id == alice.id

    def test_wrong_password(self, user_service, alice) -> None:
        with pytest.raises(AuthenticationError):
            user_service.authenticate(alice.email, "wrong")

    def test_unknown_user(self, user_service, password) -> None:
        with pytest.raises(AuthenticationError):
            user_service.authenticate("nobody@example.com", password)

    def test_deactivated_user(self, user_service, make_user, password) -> None:
        gone = make_user("gone", active=False)

        with pytest.raises(AuthorizationError):
            user_service.authenticate(gone.email, password)


class TestProfile:
    """Profile reads and edits."""

    def test_update_own_profile(self, user_service, alice) -> None:
        profile = ProfileUpdate(
            first_name="Alicia",
            last_name="Tester",
            phone="+15551234",
            date_of_birth=date(1990, 4, 1),
            address=Address(city="Lisbon", country="Portugal"),
        )

        updated = user_service.update_profile(alice, alice.id, profile)

        assert updated.first_name == "Alicia"
        assert updated.phone == "+15551234"
        assert updated.date_of_birth == date(1990, 4, 1)
        assert updated.address.city == "Lisbon"

    def test_date_of_birth_must_be_past(self, user_service, alice) -> None:
        profile = ProfileUpdate(
            first_name="A", last_name="B", date_of_birth=date.today() + timedelta(days=1)
        )

        with pytest.raises(ValidationError):
            user_service.update_profile(alice, alice.id, profile)

    def test_cannot_edit_other_users(self, user_service, alice, bob) -> None:
        with pytest.raises(AuthorizationError):
            user_service.update_profile(alice, bob.id, ProfileUpdate(first_name="X", last_name="Y"))

    def test_admin_can_read_anyone(self, user_service, admin, bob) -> None:
        assert user_service.get_user(admin, bob.id).email == bob.email

    def test_missing_user(self, user_service, admin) -> None:
        with pytest.raises(NotFoundError):
            user_service.get_user(admin, 999)


class TestAdministration:
    """Admin-only account management."""

    def test_list_users_requires_admin(self, user_service, alice) -> None:
        with pytest.raises(AuthorizationError):
            user_service.list_users(alice)

    def test_list_and_search(self, user_service, admin, alice, bob) -> None:
        users, page = user_service.list_users(admin, page=1, limit=2)

        assert len(users) == 2
        assert (page.total, page.pages) == (3, 2)

        found, page = user_service.list_users(admin, search="ALICE")
        assert [u.id for u in found] == [alice.id]
        assert page.total == 1

    def test_search_folds_non_ascii_case(self, user_service, user_repo, admin) -> None:
        user_id = user_repo.create(
            email="emile@example.com", password="secret123", first_name="Émile", last_name="Zola"
        )

        found, _ = user_service.list_users(admin, search="éMILE")

        assert [u.id for u in found] == [user_id]

    def test_set_role(self, user_service, admin, bob) -> None:
        assert user_service.set_role(admin, bob.id, "admin").is_admin

    def test_invalid_role(self, user_service, admin, bob) -> None:
        with pytest.raises(ValidationError):
            user_service.set_role(admin, bob.id, "owner")

    def test_admin_cannot_demote_self(self, user_service, admin) -> None:
        with pytest.raises(ValidationError):
            user_service.set_role(admin, admin.id, "user")

    def test_deactivate_and_activate(self, user_service, admin, bob) -> None:
        assert user_service.deactivate(admin, bob.id).is_active is False
        assert user_service.activate(admin, bob.id).is_active is True

    def test_admin_cannot_deactivate_self(self, user_service, admin) -> None:
        with pytest.raises(ValidationError):
            user_service.deactivate(admin, admin.id)

    def test_ensure_admin_is_idempotent(self, user_service) -> None:
        first = user_service.ensure_admin("root@example.com", "changeme", "Root", "User")
        second = user_service.ensure_admin("root@example.com", "changeme", "Root", "User")

        assert first.id == second.id
        assert first.is_admin
