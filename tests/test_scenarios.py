"""End-to-end flows through the HTTP surface."""

from app.core.policy import Role
from app.database.supabase_client import eq

from conftest import auth_headers, seed_user, seed_wedding

API = "/api/v1"


def _create_wedding(client, owner, **overrides):
    body = {"name": "Ana & Ben", "date": "2027-06-12", "location": "Lisbon"}
    body.update(overrides)
    return client.post(f"{API}/weddings", json=body, headers=auth_headers(owner))


def _upload(client, user, wedding_id, name="photo.jpg"):
    return client.post(
        f"{API}/media/upload",
        files={"file": (name, b"\xff\xd8\xff fake jpeg", "image/jpeg")},
        data={"weddingId": wedding_id},
        headers=auth_headers(user),
    )


def test_creating_wedding_with_new_admin_email_invites_them(client, store, email_sender):
    owner = seed_user(store, "owner@x.com", Role.SUPER_ADMIN)

    response = _create_wedding(client, owner, adminEmail="a@x.com")

    assert response.status_code == 201
    wedding = response.json()["wedding"]
    assert wedding["super_admin_id"] == owner["id"]
    assert wedding["status"] == "draft"
    invitation = store.get("wedding_invitations", single=True)
    assert (invitation["wedding_id"], invitation["email"], invitation["status"]) == (wedding["id"], "a@x.com", "pending")
    assert [m["kind"] for m in email_sender.sent] == ["admin_invitation"]


def test_creating_wedding_with_existing_admin_adds_them_directly(client, store, email_sender):
    owner = seed_user(store, "owner@x.com", Role.SUPER_ADMIN)
    admin = seed_user(store, "a@x.com", Role.ADMIN)

    response = _create_wedding(client, owner, adminEmail="a@x.com")

    assert response.json()["wedding"]["wedding_admin_ids"] == [admin["id"]]
    assert store.get("wedding_invitations") == []
    assert email_sender.sent[0]["to"] == "a@x.com"


def test_guests_cannot_create_weddings(client, store):
    guest = seed_user(store, "g@x.com", Role.GUEST)
    response = _create_wedding(client, guest)
    assert response.status_code == 403
    assert response.json()["success"] is False


def test_invited_admin_signup_joins_wedding(client, store):
    owner = seed_user(store, "owner@x.com", Role.SUPER_ADMIN)
    wedding = _create_wedding(client, owner, adminEmail="a@x.com").json()["wedding"]

    response = client.post(f"{API}/auth/signup", json={
        "name": "Alex", "email": "a@x.com", "password": "secret1", "weddingId": wedding["id"],
    })

    assert response.status_code == 201
    user = response.json()["user"]
    assert user["role"] == "admin"
    assert "session-token" in response.cookies
    assert store.get("wedding_invitations", single=True)["status"] == "accepted"
    assert store.get("weddings", [eq("id", wedding["id"])], single=True)["wedding_admin_ids"] == [user["id"]]

    client.cookies.clear()
    again = client.post(f"{API}/auth/signup", json={"name": "Alex", "email": "a@x.com", "password": "secret1"})
    assert again.status_code == 409
    assert store.get("weddings", [eq("id", wedding["id"])], single=True)["wedding_admin_ids"] == [user["id"]]


def test_guest_upload_waits_for_approval(client, store):
    owner = seed_user(store, "owner@x.com", Role.SUPER_ADMIN)
    guest = seed_user(store, "g@x.com", Role.GUEST)
    wedding = seed_wedding(store, owner)

    upload = _upload(client, guest, wedding["id"])
    assert upload.status_code == 201
    media = upload.json()["media"]
    assert media["status"] == "pending"
    assert media["is_approved"] is False

    guest_view = client.get(f"{API}/media", params={"weddingId": wedding["id"], "status": "approved"},
                            headers=auth_headers(guest))
    assert guest_view.json()["media"] == []

    owner_view = client.get(f"{API}/media", params={"weddingId": wedding["id"], "status": "all"},
                            headers=auth_headers(owner))
    assert [m["id"] for m in owner_view.json()["media"]] == [media["id"]]


def test_owner_approval_publishes_media(client, store):
    owner = seed_user(store, "owner@x.com", Role.SUPER_ADMIN)
    guest = seed_user(store, "g@x.com", Role.GUEST)
    other_guest = seed_user(store, "h@x.com", Role.GUEST)
    wedding = seed_wedding(store, owner)
    media_id = _upload(client, guest, wedding["id"]).json()["media"]["id"]

    denied = client.put(f"{API}/media/{media_id}", json={"is_approved": True}, headers=auth_headers(guest))
    assert denied.status_code == 403

    approved = client.put(f"{API}/media/{media_id}", json={"is_approved": True}, headers=auth_headers(owner))
    assert approved.status_code == 200
    assert approved.json()["media"]["status"] == "approved"

    listing = client.get(f"{API}/media", params={"weddingId": wedding["id"], "status": "approved"},
                         headers=auth_headers(other_guest))
    assert [m["id"] for m in listing.json()["media"]] == [media_id]


def test_non_member_cannot_update_wedding(client, store):
    owner = seed_user(store, "owner@x.com", Role.SUPER_ADMIN)
    guest = seed_user(store, "g@x.com", Role.GUEST)
    wedding = seed_wedding(store, owner, name="Original")

    response = client.put(f"{API}/weddings/{wedding['id']}", json={"name": "Hijacked"}, headers=auth_headers(guest))

    assert response.status_code == 403
    assert response.json() == {"success": False, "message": "Access denied"}
    assert store.get("weddings", single=True)["name"] == "Original"


def test_missing_wedding_is_404_before_403(client, store):
    guest = seed_user(store, "g@x.com", Role.GUEST)
    response = client.put(f"{API}/weddings/does-not-exist", json={"name": "x"}, headers=auth_headers(guest))
    assert response.status_code == 404
    assert response.json()["message"] == "Wedding not found"


def test_login_sets_cookie_and_accepts_pending_invitations(client, store, identity_provider):
    owner = seed_user(store, "owner@x.com", Role.SUPER_ADMIN)
    wedding = seed_wedding(store, owner)
    guest = seed_user(store, "g@x.com", Role.GUEST)
    identity_provider.register("g@x.com", "secret1", user_id=guest["id"])
    client.post(f"{API}/guests", json={"weddingId": wedding["id"], "guestEmail": "g@x.com"},
                headers=auth_headers(owner))

    response = client.post(f"{API}/auth/login", json={"email": "g@x.com", "password": "secret1"})

    assert response.status_code == 200
    assert response.json()["user"]["id"] == guest["id"]
    set_cookie = response.headers["set-cookie"].lower()
    assert "httponly" in set_cookie and "samesite=lax" in set_cookie
    assert store.get("wedding_invitations", single=True)["status"] == "accepted"

    session = client.get(f"{API}/auth/session")
    assert session.json()["user"]["email"] == "g@x.com"

    client.post(f"{API}/auth/logout")
    client.cookies.clear()
    assert client.get(f"{API}/auth/session").json()["user"] is None


def test_login_with_bad_password(client, store, identity_provider):
    guest = seed_user(store, "g@x.com", Role.GUEST)
    identity_provider.register("g@x.com", "secret1", user_id=guest["id"])
    response = client.post(f"{API}/auth/login", json={"email": "g@x.com", "password": "wrong"})
    assert response.status_code == 401
    assert "set-cookie" not in response.headers


def test_guest_sees_wedding_public_fields_only(client, store):
    owner = seed_user(store, "owner@x.com", Role.SUPER_ADMIN)
    guest = seed_user(store, "g@x.com", Role.GUEST)
    wedding = seed_wedding(store, owner)

    as_guest = client.get(f"{API}/weddings/{wedding['id']}", headers=auth_headers(guest)).json()["wedding"]
    as_owner = client.get(f"{API}/weddings/{wedding['id']}", headers=auth_headers(owner)).json()["wedding"]

    assert "super_admin_id" not in as_guest and "code" not in as_guest
    assert as_owner["super_admin_id"] == owner["id"]
    assert as_owner["photoCount"] == 0
