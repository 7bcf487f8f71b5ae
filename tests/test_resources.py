"""Resource routes: guests, wedding listing and joining, questions/answers, events, media moderation, invitations, admin."""

import pytest

from app.config import settings
from app.core.policy import Role

from conftest import auth_headers, seed_user, seed_wedding

API = "/api/v1"


@pytest.fixture
def owner(store):
    return seed_user(store, "owner@x.com", Role.SUPER_ADMIN)


@pytest.fixture
def co_admin(store):
    return seed_user(store, "co@x.com", Role.ADMIN)


@pytest.fixture
def guest(store):
    return seed_user(store, "g@x.com", Role.GUEST)


@pytest.fixture
def wedding(store, owner, co_admin):
    return seed_wedding(store, owner, admin_ids=[co_admin["id"]])


# Guests / RSVP

def test_invite_guest_and_rsvp(client, store, email_sender, owner, guest, wedding):
    created = client.post(f"{API}/guests", json={
        "weddingId": wedding["id"], "guestEmail": "G@x.com", "guestName": "Gina", "plusOne": True,
    }, headers=auth_headers(owner))
    assert created.status_code == 201
    row = created.json()["invitation"]
    assert row["guest_id"] == guest["id"]
    assert email_sender.sent[-1]["kind"] == "guest_invitation"

    duplicate = client.post(f"{API}/guests", json={"weddingId": wedding["id"], "guestEmail": "g@x.com"},
                            headers=auth_headers(owner))
    assert duplicate.status_code == 409

    rsvp = client.put(f"{API}/guests", json={"invitationId": row["id"], "rsvpStatus": "yes"},
                      headers=auth_headers(guest))
    assert rsvp.status_code == 200
    assert rsvp.json()["invitation"]["rsvp_status"] == "attending"
    assert rsvp.json()["invitation"]["responded_at"] is not None


def test_guest_cannot_touch_someone_elses_rsvp(client, store, owner, guest, wedding):
    row = client.post(f"{API}/guests", json={"weddingId": wedding["id"], "guestEmail": "other@x.com"},
                      headers=auth_headers(owner)).json()["invitation"]

    response = client.put(f"{API}/guests", json={"invitationId": row["id"], "rsvpStatus": "no"},
                          headers=auth_headers(guest))
    assert response.status_code == 403

    removed = client.delete(f"{API}/guests", params={"invitationId": row["id"]}, headers=auth_headers(guest))
    assert removed.status_code == 403


def test_guest_list_is_scoped(client, owner, co_admin, guest, wedding):
    for email in ("g@x.com", "other@x.com"):
        client.post(f"{API}/guests", json={"weddingId": wedding["id"], "guestEmail": email},
                    headers=auth_headers(co_admin))

    full = client.get(f"{API}/guests", params={"weddingId": wedding["id"]}, headers=auth_headers(owner))
    own = client.get(f"{API}/guests", params={"weddingId": wedding["id"]}, headers=auth_headers(guest))

    assert len(full.json()["guests"]) == 2
    assert [g["guest_email"] for g in own.json()["guests"]] == ["g@x.com"]


def test_invalid_rsvp_status_is_400(client, owner, wedding):
    row = client.post(f"{API}/guests", json={"weddingId": wedding["id"], "guestEmail": "x@x.com"},
                      headers=auth_headers(owner)).json()["invitation"]
    response = client.put(f"{API}/guests", json={"invitationId": row["id"], "rsvpStatus": "perhaps"},
                          headers=auth_headers(owner))
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_guest_sees_weddings_they_are_invited_to(client, store, owner, guest, wedding):
    seed_wedding(store, owner, name="Someone else")
    client.post(f"{API}/guests", json={"weddingId": wedding["id"], "guestEmail": "g@x.com"},
                headers=auth_headers(owner))

    listing = client.get(f"{API}/weddings", headers=auth_headers(guest))
    assert [w["id"] for w in listing.json()["weddings"]] == [wedding["id"]]

    listed = listing.json()["weddings"][0]
    assert listed["name"] == "Ana & Ben"
    for private in ("code", "super_admin_id", "wedding_admin_ids", "guestCount"):
        assert private not in listed


def test_managers_list_full_wedding_rows(client, store, owner, co_admin, wedding):
    platform = seed_user(store, "platform@x.com", Role.APPLICATION_ADMIN)

    for user in (owner, co_admin, platform):
        listing = client.get(f"{API}/weddings", headers=auth_headers(user))
        rows = listing.json()["weddings"]
        assert [w["id"] for w in rows] == [wedding["id"]]
        assert rows[0]["code"] == "ANABEN0001"
        assert rows[0]["super_admin_id"] == owner["id"]


# Joining by wedding code

def test_join_wedding_by_code(client, store, guest, wedding):
    joined = client.post(f"{API}/weddings/join", json={"code": " anaben0001 "}, headers=auth_headers(guest))
    assert joined.status_code == 200
    body = joined.json()
    assert body["wedding"]["id"] == wedding["id"]
    assert "code" not in body["wedding"]
    assert body["guest"]["guest_id"] == guest["id"]
    assert body["guest"]["rsvp_status"] == "pending"

    again = client.post(f"{API}/weddings/join", json={"code": "ANABEN0001"}, headers=auth_headers(guest))
    assert again.json()["guest"]["id"] == body["guest"]["id"]
    assert len(store.get("wedding_guests")) == 1

    listing = client.get(f"{API}/weddings", headers=auth_headers(guest))
    assert [w["id"] for w in listing.json()["weddings"]] == [wedding["id"]]


def test_join_links_an_existing_guest_row(client, store, guest, wedding):
    row = store.insert("wedding_guests", {
        "wedding_id": wedding["id"], "guest_email": "g@x.com", "guest_id": None, "rsvp_status": "attending",
    })

    joined = client.post(f"{API}/weddings/join", json={"code": "ANABEN0001"}, headers=auth_headers(guest))

    assert joined.json()["guest"]["id"] == row["id"]
    assert joined.json()["guest"]["rsvp_status"] == "attending"
    assert store.get("wedding_guests", single=True)["guest_id"] == guest["id"]


def test_join_rejects_unknown_or_archived_codes(client, store, owner, guest, wedding):
    seed_wedding(store, owner, code="OLDONE0001", status="archived")

    assert client.post(f"{API}/weddings/join", json={"code": "NOPE0000"}, headers=auth_headers(guest)).status_code == 400
    assert client.post(f"{API}/weddings/join", json={"code": "OLDONE0001"}, headers=auth_headers(guest)).status_code == 400
    assert client.post(f"{API}/weddings/join", json={"code": "ANABEN0001"}).status_code == 401
    assert store.get("wedding_guests") == []


# Questions and answers

def test_answer_once_per_question(client, owner, guest, wedding):
    question = client.post(f"{API}/questions", json={
        "weddingId": wedding["id"], "questionText": "Favourite song?", "questionType": "text",
    }, headers=auth_headers(owner)).json()["question"]

    first = client.post(f"{API}/answers", json={"questionId": question["id"], "answerText": "Dancing Queen"},
                        headers=auth_headers(guest))
    assert first.status_code == 201

    second = client.post(f"{API}/answers", json={"questionId": question["id"], "answerText": "Vogue"},
                         headers=auth_headers(guest))
    assert second.status_code == 409

    owner_edit = client.put(f"{API}/answers", json={"answerId": first.json()["answer"]["id"], "answerText": "x"},
                            headers=auth_headers(owner))
    assert owner_edit.status_code == 403

    owner_delete = client.delete(f"{API}/answers", params={"answerId": first.json()["answer"]["id"]},
                                 headers=auth_headers(owner))
    assert owner_delete.status_code == 200


def test_only_multiple_choice_keeps_options(client, owner, wedding):
    text = client.post(f"{API}/questions", json={
        "weddingId": wedding["id"], "questionText": "Any advice?", "questionType": "text", "options": ["a", "b"],
    }, headers=auth_headers(owner)).json()["question"]
    choice = client.post(f"{API}/questions", json={
        "weddingId": wedding["id"], "questionText": "Fish or meat?", "questionType": "multiple_choice",
        "options": ["Fish", "Meat"],
    }, headers=auth_headers(owner)).json()["question"]

    assert text["options"] is None
    assert choice["options"] == ["Fish", "Meat"]


def test_guest_cannot_ask_questions(client, guest, wedding):
    response = client.post(f"{API}/questions", json={
        "weddingId": wedding["id"], "questionText": "?", "questionType": "text",
    }, headers=auth_headers(guest))
    assert response.status_code == 403


def test_questions_with_answers_hide_other_guests_answers(client, store, owner, guest, wedding):
    other = seed_user(store, "h@x.com", Role.GUEST)
    question = client.post(f"{API}/questions", json={
        "weddingId": wedding["id"], "questionText": "Favourite song?", "questionType": "text",
    }, headers=auth_headers(owner)).json()["question"]
    for user, text in ((guest, "mine"), (other, "theirs")):
        client.post(f"{API}/answers", json={"questionId": question["id"], "answerText": text},
                    headers=auth_headers(user))

    params = {"weddingId": wedding["id"], "includeAnswers": "true"}
    as_guest = client.get(f"{API}/questions", params=params, headers=auth_headers(guest)).json()["questions"]
    as_owner = client.get(f"{API}/questions", params=params, headers=auth_headers(owner)).json()["questions"]

    assert [a["answer_text"] for a in as_guest[0]["answers"]] == ["mine"]
    assert len(as_owner[0]["answers"]) == 2


# Events

def test_event_lifecycle(client, co_admin, guest, wedding):
    created = client.post(f"{API}/events", json={
        "weddingId": wedding["id"], "title": "Ceremony", "startTime": "2027-06-12T15:00:00Z",
        "endTime": "2027-06-12T16:00:00Z", "eventType": "ceremony",
    }, headers=auth_headers(co_admin))
    assert created.status_code == 201
    event_id = created.json()["event"]["id"]

    private = client.post(f"{API}/events", json={
        "weddingId": wedding["id"], "title": "Setup", "startTime": "2027-06-12T09:00:00Z", "isPublic": False,
    }, headers=auth_headers(co_admin))
    assert private.status_code == 201

    listing = client.get(f"{API}/events", params={"weddingId": wedding["id"]}, headers=auth_headers(guest))
    assert [e["title"] for e in listing.json()["events"]] == ["Ceremony"]

    assert client.delete(f"{API}/events", params={"eventId": event_id}, headers=auth_headers(guest)).status_code == 403
    assert client.delete(f"{API}/events", params={"eventId": event_id}, headers=auth_headers(co_admin)).status_code == 200


def test_event_end_before_start_is_400(client, owner, wedding):
    response = client.post(f"{API}/events", json={
        "weddingId": wedding["id"], "title": "Backwards", "startTime": "2027-06-12T15:00:00Z",
        "endTime": "2027-06-12T14:00:00Z",
    }, headers=auth_headers(owner))
    assert response.status_code == 400


# Media moderation

def _upload(client, user, wedding_id):
    return client.post(
        f"{API}/media/upload",
        files={"file": ("photo.png", b"\x89PNG fake", "image/png")},
        data={"weddingId": wedding_id, "description": "first dance"},
        headers=auth_headers(user),
    )


def test_admin_uploads_are_approved(client, co_admin, wedding):
    media = _upload(client, co_admin, wedding["id"]).json()["media"]
    assert media["status"] == "approved"
    assert media["approved_by"] == co_admin["id"]


def test_rejecting_is_deleting(client, media_storage, owner, guest, wedding):
    media = _upload(client, guest, wedding["id"]).json()["media"]

    unapprove = client.put(f"{API}/media/{media['id']}", json={"is_approved": False}, headers=auth_headers(owner))
    assert unapprove.status_code == 400

    deleted = client.delete(f"{API}/media/{media['id']}", headers=auth_headers(owner))
    assert deleted.status_code == 200
    assert media_storage.objects == {}
    assert client.get(f"{API}/media/{media['id']}", headers=auth_headers(owner)).status_code == 404


def test_non_image_upload_is_rejected(client, media_storage, guest, wedding):
    response = client.post(
        f"{API}/media/upload",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        data={"weddingId": wedding["id"]},
        headers=auth_headers(guest),
    )
    assert response.status_code == 400
    assert media_storage.objects == {}


def test_failed_metadata_insert_removes_stored_object(client, store, media_storage, guest, wedding):
    store.fail_inserts.add("media")
    response = _upload(client, guest, wedding["id"])
    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Service temporarily unavailable"}
    assert media_storage.objects == {}


def test_oversized_upload_is_rejected(client, monkeypatch, media_storage, guest, wedding):
    monkeypatch.setattr(settings, "max_upload_bytes", 4)

    response = _upload(client, guest, wedding["id"])

    assert response.status_code == 400
    assert "upload limit" in response.json()["message"]
    assert media_storage.objects == {}


def test_storage_outage_is_500(client, media_storage, guest, wedding):
    media_storage.fail = True
    assert _upload(client, guest, wedding["id"]).status_code == 500


def test_guest_cannot_read_others_pending_media(client, store, guest, wedding):
    uploader = seed_user(store, "u@x.com", Role.GUEST)
    media = _upload(client, uploader, wedding["id"]).json()["media"]
    assert client.get(f"{API}/media/{media['id']}", headers=auth_headers(guest)).status_code == 403
    assert client.get(f"{API}/media/{media['id']}", headers=auth_headers(uploader)).status_code == 200


# Invitations

def test_only_owner_invites_admins(client, email_sender, owner, co_admin, wedding):
    denied = client.post(f"{API}/weddings/{wedding['id']}/invitations", json={"email": "new@x.com", "role": "admin"},
                         headers=auth_headers(co_admin))
    assert denied.status_code == 403

    created = client.post(f"{API}/weddings/{wedding['id']}/invitations", json={"email": "new@x.com", "role": "admin"},
                          headers=auth_headers(owner))
    assert created.status_code == 201
    assert created.json()["invitation"]["role"] == "admin"

    listing = client.get(f"{API}/weddings/{wedding['id']}/invitations", headers=auth_headers(co_admin))
    assert [i["email"] for i in listing.json()["invitations"]] == ["new@x.com"]


def test_guest_invitation_route_adds_rsvp_row(client, store, co_admin, wedding):
    response = client.post(f"{API}/weddings/{wedding['id']}/invitations", json={"email": "n@x.com", "guest_name": "Nia"},
                           headers=auth_headers(co_admin))
    assert response.status_code == 201
    assert response.json()["invitation"]["role"] == "guest"
    assert [r["guest_email"] for r in store.get("wedding_guests")] == ["n@x.com"]


def test_accept_invitation_route(client, store, owner, wedding):
    client.post(f"{API}/weddings/{wedding['id']}/invitations", json={"email": "late@x.com", "role": "admin"},
                headers=auth_headers(owner))
    late = seed_user(store, "late@x.com", Role.GUEST)

    response = client.post(f"{API}/invitations/accept", json={"weddingId": wedding["id"]}, headers=auth_headers(late))

    assert response.status_code == 200
    assert late["id"] in store.get("weddings", single=True)["wedding_admin_ids"]


def test_removed_guest_cannot_accept_their_way_back(client, store, owner, guest, wedding):
    row = client.post(f"{API}/guests", json={"weddingId": wedding["id"], "guestEmail": "g@x.com"},
                      headers=auth_headers(owner)).json()["invitation"]
    accepted = client.post(f"{API}/invitations/accept", json={"weddingId": wedding["id"]}, headers=auth_headers(guest))
    assert accepted.status_code == 200

    removed = client.delete(f"{API}/guests", params={"invitationId": row["id"]}, headers=auth_headers(owner))
    assert removed.status_code == 200

    again = client.post(f"{API}/invitations/accept", json={"weddingId": wedding["id"]}, headers=auth_headers(guest))
    assert again.status_code == 200
    assert again.json()["invitation"]["status"] == "accepted"
    assert store.get("wedding_guests") == []
    assert client.get(f"{API}/weddings", headers=auth_headers(guest)).json()["weddings"] == []


def test_removing_a_guest_withdraws_the_pending_invitation(client, store, owner, guest, wedding):
    row = client.post(f"{API}/guests", json={"weddingId": wedding["id"], "guestEmail": "g@x.com"},
                      headers=auth_headers(owner)).json()["invitation"]
    client.delete(f"{API}/guests", params={"invitationId": row["id"]}, headers=auth_headers(owner))

    assert store.get("wedding_invitations") == []
    accept = client.post(f"{API}/invitations/accept", json={"weddingId": wedding["id"]}, headers=auth_headers(guest))
    assert accept.status_code == 404
    assert store.get("wedding_guests") == []


# Weddings

def test_owner_only_deletes_wedding(client, store, owner, co_admin, wedding):
    assert client.delete(f"{API}/weddings/{wedding['id']}", headers=auth_headers(co_admin)).status_code == 403
    assert client.delete(f"{API}/weddings/{wedding['id']}", headers=auth_headers(owner)).status_code == 200
    assert store.get("weddings") == []


def test_validate_subdomain(client, store, owner):
    seed_wedding(store, owner, subdomain="ana-and-ben")

    assert client.get(f"{API}/weddings/validate-subdomain", params={"subdomain": "fresh-name"}).status_code == 200
    assert client.get(f"{API}/weddings/validate-subdomain", params={"subdomain": "ana-and-ben"}).status_code == 409
    assert client.get(f"{API}/weddings/validate-subdomain", params={"subdomain": "admin"}).status_code == 400
    assert client.get(f"{API}/weddings/validate-subdomain", params={"subdomain": "-bad"}).status_code == 400


def test_lookup_by_subdomain_is_public(client, store, owner):
    seed_wedding(store, owner, subdomain="ana-and-ben")
    response = client.get(f"{API}/weddings/subdomain/ana-and-ben")
    assert response.status_code == 200
    assert "super_admin_id" not in response.json()["wedding"]
    assert client.get(f"{API}/weddings/subdomain/missing").status_code == 404


# Admin

def test_application_admin_provisions_super_admins(client, store, identity_provider, email_sender):
    platform = seed_user(store, "platform@x.com", Role.APPLICATION_ADMIN)

    created = client.post(f"{API}/admin/super-admins", json={
        "name": "Sam", "email": "sam@x.com", "password": "longenough",
    }, headers=auth_headers(platform))
    assert created.status_code == 201
    sam = created.json()["user"]
    assert sam["role"] == "super_admin"
    assert "sam@x.com" in identity_provider.accounts
    assert email_sender.sent[-1] == {"kind": "welcome", "to": "sam@x.com"}

    listing = client.get(f"{API}/admin/super-admins", headers=auth_headers(platform))
    assert [a["email"] for a in listing.json()["superAdmins"]] == ["sam@x.com"]

    removed = client.delete(f"{API}/admin/super-admins/{sam['id']}", headers=auth_headers(platform))
    assert removed.status_code == 200
    assert identity_provider.deleted == [sam["id"]]


def test_super_admin_row_failure_removes_provider_account(client, store, identity_provider):
    platform = seed_user(store, "platform@x.com", Role.APPLICATION_ADMIN)
    store.fail_inserts.add("users")

    response = client.post(f"{API}/admin/super-admins", json={
        "name": "Sam", "email": "sam@x.com", "password": "longenough",
    }, headers=auth_headers(platform))

    assert response.status_code == 500
    assert "sam@x.com" not in identity_provider.accounts


def test_admin_routes_need_application_admin(client, owner):
    assert client.get(f"{API}/admin/super-admins", headers=auth_headers(owner)).status_code == 403


# Super admin applications

APPLICATION = {
    "business_name": "Blossom Events", "business_type": "planner", "contact_person": "Rita", "email": "Rita@Blossom.com",
}


def _apply(client, **overrides):
    return client.post(f"{API}/applications", json={**APPLICATION, **overrides})


def test_application_submission_is_public_and_unique(client, store):
    submitted = _apply(client)
    assert submitted.status_code == 201
    application = submitted.json()["application"]
    assert application["status"] == "pending"
    assert application["email"] == "rita@blossom.com"

    assert _apply(client, email="rita@blossom.com").status_code == 409
    assert _apply(client, business_name="  ").status_code == 400
    assert len(store.get("super_admin_applications")) == 1


def test_applications_are_listed_for_application_admins_only(client, store, owner):
    platform = seed_user(store, "platform@x.com", Role.APPLICATION_ADMIN)
    _apply(client)

    assert client.get(f"{API}/applications", headers=auth_headers(owner)).status_code == 403
    pending = client.get(f"{API}/applications", params={"status": "pending"}, headers=auth_headers(platform))
    assert [a["email"] for a in pending.json()["applications"]] == ["rita@blossom.com"]
    approved = client.get(f"{API}/applications", params={"status": "approved"}, headers=auth_headers(platform))
    assert approved.json()["applications"] == []


def test_approving_an_application_provisions_a_super_admin(client, store, identity_provider, email_sender):
    platform = seed_user(store, "platform@x.com", Role.APPLICATION_ADMIN)
    application = _apply(client).json()["application"]
    approve_url = f"{API}/applications/{application['id']}/approve"

    no_password = client.post(approve_url, json={"status": "approved"}, headers=auth_headers(platform))
    assert no_password.status_code == 400
    assert store.get("super_admin_applications", single=True)["status"] == "pending"

    approved = client.post(approve_url, json={
        "status": "approved", "password": "longenough", "payment_verified": True, "trial_end_date": "2027-02-01",
    }, headers=auth_headers(platform))
    assert approved.status_code == 200
    reviewed = approved.json()["application"]
    assert reviewed["status"] == "approved"
    assert reviewed["reviewed_by"] == platform["id"]
    assert reviewed["payment_verified"] is True

    users = [u for u in store.get("users") if u["email"] == "rita@blossom.com"]
    assert [(u["name"], u["role"]) for u in users] == [("Rita", "super_admin")]
    assert "rita@blossom.com" in identity_provider.accounts
    assert email_sender.sent[-1] == {"kind": "welcome", "to": "rita@blossom.com"}

    twice = client.post(approve_url, json={"status": "rejected"}, headers=auth_headers(platform))
    assert twice.status_code == 400


def test_approval_promotes_an_existing_account(client, store, identity_provider):
    platform = seed_user(store, "platform@x.com", Role.APPLICATION_ADMIN)
    existing = seed_user(store, "rita@blossom.com", Role.GUEST)
    application = _apply(client).json()["application"]

    response = client.post(f"{API}/applications/{application['id']}/approve", json={"status": "approved"},
                           headers=auth_headers(platform))

    assert response.status_code == 200
    assert [u["role"] for u in store.get("users") if u["id"] == existing["id"]] == ["super_admin"]
    assert "rita@blossom.com" not in identity_provider.accounts


def test_rejecting_an_application_creates_no_account(client, store, identity_provider):
    platform = seed_user(store, "platform@x.com", Role.APPLICATION_ADMIN)
    application = _apply(client).json()["application"]
    approve_url = f"{API}/applications/{application['id']}/approve"

    assert client.post(approve_url, json={"status": "pending"}, headers=auth_headers(platform)).status_code == 400
    rejected = client.post(approve_url, json={"status": "rejected"}, headers=auth_headers(platform))

    assert rejected.status_code == 200
    assert rejected.json()["application"]["status"] == "rejected"
    assert [u["email"] for u in store.get("users")] == ["platform@x.com"]
    assert identity_provider.accounts == {}
    assert client.post(f"{API}/applications/missing/approve", json={"status": "rejected"},
                       headers=auth_headers(platform)).status_code == 404
