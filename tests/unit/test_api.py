"""Tests for the REST API."""

import pytest


def send(client, to, subject="Hello", body="Hi there", **extra):
    payload = {"to": to, "subject": subject, "body": body, **extra}
    return client.post("/api/messages", json=payload)


class TestAuthApi:
    """Registration, login and session handling."""

    def test_register_signs_in(self, client_for) -> None:
        client = client_for()

        response = client.post(
            "/api/auth/register",
            json={
                "firstName": "Erin",
                "lastName": "Example",
                "email": "erin@example.com",
                "password": "hunter22",
            },
        )

        assert response.status_code == 201
        user = response.json()["user"]
        assert user["email"] == "erin@example.com"
        assert "passwordHash" not in user
        assert client.get("/api/auth/me").json()["user"]["firstName"] == "Erin"

    def test_register_duplicate(self, client_for, alice) -> None:
        response = client_for().post(
            "/api/auth/register",
            json={"firstName": "A", "lastName": "B", "email": alice.email, "password": "hunter22"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "User already exists"

    def test_bad_login(self, client_for, alice) -> None:
        response = client_for().post(
            "/api/auth/login", json={"email": alice.email, "password": "wrong"}
        )

        assert response.status_code == 401

    def test_deactivated_login(self, client_for, make_user, password) -> None:
        gone = make_user("gone", active=False)

        response = client_for().post("/api/auth/login", json={"email": gone.email, "password": password})

        assert response.status_code == 403

    def test_logout(self, client_for, alice) -> None:
        client = client_for(alice)

        assert client.post("/api/auth/logout").status_code == 200
        assert client.get("/api/auth/me").status_code == 401

    def test_session_dropped_after_deactivation(self, client_for, user_repo, alice) -> None:
        client = client_for(alice)
        user_repo.set_active(alice.id, False)

        assert client.get("/api/messages").status_code == 401

    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", "/api/messages"),
            ("get", "/api/messages/1"),
            ("post", "/api/messages"),
            ("put", "/api/messages/1"),
            ("delete", "/api/messages/1"),
            ("post", "/api/messages/1/reply"),
            ("post", "/api/messages/1/forward"),
            ("get", "/api/users"),
        ],
    )
    def test_requires_authentication(self, client_for, method, path) -> None:
        response = getattr(client_for(), method)(path)

        assert response.status_code == 401


class TestMessagesApi:
    """Message endpoints."""

    def test_send_and_list(self, client_for, alice, bob) -> None:
        response = send(client_for(alice), [bob.email], cc=[], bcc=[])

        assert response.status_code == 201
        body = response.json()
        assert body["detail"] == "Email sent successfully"
        message = body["message"]
        assert message["from"] == {
            "id": alice.id,
            "firstName": "Alice",
            "lastName": "Tester",
            "email": alice.email,
        }
        assert message["labels"] == ["sent"]
        assert message["isRead"] is False

        listing = client_for(bob).get("/api/messages").json()
        assert listing["label"] == "inbox"
        assert [m["id"] for m in listing["messages"]] == [message["id"]]
        assert listing["pagination"] == {"current": 1, "pages": 1, "total": 1}

    def test_save_draft(self, client_for, alice) -> None:
        response = client_for(alice).post(
            "/api/messages", json={"subject": "Later", "body": "Draft", "isDraft": True}
        )

        assert response.status_code == 201
        assert response.json()["detail"] == "Draft saved successfully"
        assert response.json()["message"]["labels"] == ["draft"]

    def test_unknown_recipient(self, client_for, message_repo, alice) -> None:
        response = send(client_for(alice), ["ghost@nowhere.test"])

        assert response.status_code == 400
        assert response.json()["detail"] == "One or more recipients not found"
        assert message_repo.get_by_id(1) is None

    def test_missing_fields(self, client_for, alice, bob) -> None:
        response = client_for(alice).post("/api/messages", json={"to": [bob.email]})

        assert response.status_code == 400
        fields = {e["field"] for e in response.json()["errors"]}
        assert {"subject", "body"} <= fields

    def test_pagination(self, client_for, alice, bob) -> None:
        sender = client_for(alice)
        for i in range(25):
            assert send(sender, [bob.email], subject=f"Message {i}").status_code == 201

        reader = client_for(bob)
        first = reader.get("/api/messages", params={"label": "inbox", "limit": 20}).json()
        second = reader.get("/api/messages", params={"label": "inbox", "limit": 20, "page": 2}).json()

        assert len(first["messages"]) == 20
        assert first["pagination"] == {"current": 1, "pages": 2, "total": 25}
        assert len(second["messages"]) == 5
        assert second["pagination"]["current"] == 2

    def test_invalid_page(self, client_for, alice) -> None:
        response = client_for(alice).get("/api/messages", params={"page": 0})

        assert response.status_code == 400

    def test_search_is_anded_with_label(self, client_for, alice, bob) -> None:
        send(client_for(bob), [alice.email], subject="Invoice")

        listing = client_for(alice).get(
            "/api/messages", params={"label": "sent", "search": "invoice"}
        ).json()

        assert listing["messages"] == []
        assert listing["pagination"]["total"] == 0

    def test_get_marks_read(self, client_for, alice, bob) -> None:
        message_id = send(client_for(alice), [bob.email]).json()["message"]["id"]
        reader = client_for(bob)

        first = reader.get(f"/api/messages/{message_id}").json()["message"]
        second = reader.get(f"/api/messages/{message_id}").json()["message"]

        assert first["isRead"] is True
        assert second["isRead"] is True
        assert first["updatedAt"] == second["updatedAt"]

    def test_get_missing_and_forbidden(self, client_for, alice, bob, carol) -> None:
        message_id = send(client_for(alice), [bob.email]).json()["message"]["id"]

        assert client_for(carol).get(f"/api/messages/{message_id}").status_code == 403
        assert client_for(carol).get("/api/messages/999").status_code == 404

    def test_update_flags(self, client_for, alice, bob) -> None:
        message_id = send(client_for(alice), [bob.email]).json()["message"]["id"]

        response = client_for(bob).put(f"/api/messages/{message_id}", json={"isImportant": True})

        assert response.status_code == 200
        assert response.json()["message"]["isImportant"] is True
        important = client_for(bob).get("/api/messages", params={"label": "important"}).json()
        assert [m["id"] for m in important["messages"]] == [message_id]

    def test_update_rejects_other_fields(self, client_for, alice, bob) -> None:
        message_id = send(client_for(alice), [bob.email]).json()["message"]["id"]

        response = client_for(bob).put(
            f"/api/messages/{message_id}", json={"isRead": True, "subject": "Hijacked"}
        )

        assert response.status_code == 400
        assert client_for(alice).get(f"/api/messages/{message_id}").json()["message"]["subject"] == "Hello"

    def test_update_forbidden(self, client_for, alice, bob, carol) -> None:
        message_id = send(client_for(alice), [bob.email]).json()["message"]["id"]

        assert client_for(carol).put(f"/api/messages/{message_id}", json={"isRead": True}).status_code == 403
        assert client_for(carol).put("/api/messages/999", json={"isRead": True}).status_code == 404

    def test_delete_moves_to_trash(self, client_for, alice, bob) -> None:
        message_id = send(client_for(alice), [bob.email]).json()["message"]["id"]
        reader = client_for(bob)

        response = reader.delete(f"/api/messages/{message_id}")

        assert response.status_code == 200
        assert reader.get("/api/messages").json()["messages"] == []
        trash = reader.get("/api/messages", params={"label": "trash"}).json()["messages"]
        assert [m["id"] for m in trash] == [message_id]
        assert trash[0]["labels"] == ["trash"]
        assert trash[0]["isDeleted"] is True

    def test_bcc_hidden_from_recipients(self, client_for, alice, bob, carol) -> None:
        message_id = send(client_for(alice), [bob.email], bcc=[carol.email]).json()["message"]["id"]

        assert client_for(bob).get(f"/api/messages/{message_id}").json()["message"]["bcc"] == []
        sender_view = client_for(alice).get(f"/api/messages/{message_id}").json()["message"]
        assert [p["email"] for p in sender_view["bcc"]] == [carol.email]

    def test_reply(self, client_for, alice, bob) -> None:
        message_id = send(client_for(alice), [bob.email], subject="Re: Hello").json()["message"]["id"]

        response = client_for(bob).post(f"/api/messages/{message_id}/reply", json={"body": "Sure"})

        assert response.status_code == 201
        reply = response.json()["message"]
        assert reply["subject"] == "Re: Hello"
        assert reply["replyTo"] == message_id
        assert reply["forwardedFrom"] is None
        assert [p["email"] for p in reply["to"]] == [alice.email]

    def test_sender_cannot_reply(self, client_for, alice, bob) -> None:
        message_id = send(client_for(alice), [bob.email]).json()["message"]["id"]

        response = client_for(alice).post(f"/api/messages/{message_id}/reply", json={"body": "Hm"})

        assert response.status_code == 403

    def test_forward(self, client_for, alice, bob, carol) -> None:
        message_id = send(client_for(alice), [bob.email]).json()["message"]["id"]

        response = client_for(bob).post(
            f"/api/messages/{message_id}/forward", json={"to": [carol.email]}
        )

        assert response.status_code == 201
        forward = response.json()["message"]
        assert forward["subject"] == "Fwd: Hello"
        assert forward["forwardedFrom"] == message_id
        assert forward["body"].startswith("--- Forwarded message ---")

    def test_forward_to_unknown(self, client_for, alice, bob) -> None:
        message_id = send(client_for(alice), [bob.email]).json()["message"]["id"]

        response = client_for(bob).post(
            f"/api/messages/{message_id}/forward", json={"to": ["ghost@nowhere.test"]}
        )

        assert response.status_code == 400


class TestUsersApi:
    """Profile and administration endpoints."""

    def test_non_admin_cannot_list(self, client_for, alice) -> None:
        assert client_for(alice).get("/api/users").status_code == 403

    def test_admin_lists_users(self, client_for, admin, alice, bob) -> None:
        response = client_for(admin).get("/api/users", params={"search": "bob"})

        assert response.status_code == 200
        assert [u["email"] for u in response.json()["users"]] == [bob.email]
        assert response.json()["pagination"] == {"current": 1, "pages": 1, "total": 1}

    def test_update_own_profile(self, client_for, alice) -> None:
        response = client_for(alice).put(
            f"/api/users/{alice.id}",
            json={
                "firstName": "Alicia",
                "lastName": "Tester",
                "phone": "+351912345678",
                "dateOfBirth": "1990-04-01",
                "address": {"city": "Lisbon", "zipCode": "1000-001"},
            },
        )

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["firstName"] == "Alicia"
        assert user["dateOfBirth"] == "1990-04-01"
        assert user["address"]["zipCode"] == "1000-001"

    def test_cannot_update_someone_else(self, client_for, alice, bob) -> None:
        response = client_for(alice).put(
            f"/api/users/{bob.id}", json={"firstName": "X", "lastName": "Y"}
        )

        assert response.status_code == 403

    def test_role_and_activation(self, client_for, admin, bob) -> None:
        client = client_for(admin)

        assert client.put(f"/api/users/{bob.id}/role", json={"role": "admin"}).json()["user"]["role"] == "admin"
        assert client.delete(f"/api/users/{bob.id}").json()["user"]["isActive"] is False
        assert client.put(f"/api/users/{bob.id}/activate").json()["user"]["isActive"] is True

    def test_deactivated_recipient_cannot_receive(self, client_for, admin, alice, bob) -> None:
        client_for(admin).delete(f"/api/users/{bob.id}")

        assert send(client_for(alice), [bob.email]).status_code == 400
