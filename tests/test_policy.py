"""Decision-table tests for app.core.policy: pure, no I/O."""

import pytest

from app.core.errors import Forbidden
from app.core.policy import (
    Action, AnswerRef, ChildKind, ChildRef, EventRef, GuestRef, MediaRef, MediaStatus,
    Principal, QuestionRef, Role, Tier, WeddingRef, authorize, can, effective_tier,
    initial_media_status,
)

OWNER = Principal(id="owner", email="owner@x.com", role=Role.SUPER_ADMIN)
CO_ADMIN = Principal(id="co", email="co@x.com", role=Role.ADMIN)
GUEST = Principal(id="guest", email="guest@x.com", role=Role.GUEST)
STRANGER_ADMIN = Principal(id="other", email="other@x.com", role=Role.ADMIN)
APP_ADMIN = Principal(id="platform", email="platform@x.com", role=Role.APPLICATION_ADMIN)

WEDDING = WeddingRef(id="w1", owner_id="owner", admin_ids=frozenset({"co"}))


def test_tiers():
    assert effective_tier(OWNER, WEDDING) is Tier.OWNER
    assert effective_tier(CO_ADMIN, WEDDING) is Tier.CO_ADMIN
    assert effective_tier(GUEST, WEDDING) is Tier.GUEST
    assert effective_tier(STRANGER_ADMIN, WEDDING) is Tier.GUEST


def test_admin_ids_need_admin_role():
    """A guest-role principal listed in admin_ids stays in the guest tier"""
    promoted_guest = Principal(id="co", email="co@x.com", role=Role.GUEST)
    assert effective_tier(promoted_guest, WEDDING) is Tier.GUEST


def test_owner_tier_wins_regardless_of_role():
    owner_as_guest = Principal(id="owner", email="owner@x.com", role=Role.GUEST)
    assert effective_tier(owner_as_guest, WEDDING) is Tier.OWNER


def test_wedding_without_owner_has_no_owner_tier():
    orphan = WeddingRef(id="w2", owner_id=None)
    assert effective_tier(Principal(id="x", email="x@x.com", role=Role.SUPER_ADMIN), orphan) is Tier.GUEST


@pytest.mark.parametrize("principal,allowed", [
    (OWNER, True),
    (CO_ADMIN, True),
    (GUEST, False),
    (STRANGER_ADMIN, False),
    (APP_ADMIN, False),
])
def test_wedding_update(principal, allowed):
    assert can(principal, Action.UPDATE_ANY, WEDDING) is allowed


def test_only_owner_deletes_wedding():
    assert can(OWNER, Action.DELETE, WEDDING)
    assert not can(CO_ADMIN, Action.DELETE, WEDDING)
    assert not can(GUEST, Action.DELETE, WEDDING)


def test_application_admin_reads_any_wedding():
    assert can(APP_ADMIN, Action.READ, WEDDING)
    assert not can(APP_ADMIN, Action.DELETE, WEDDING)


def test_only_owner_invites_admins():
    admins = ChildRef(WEDDING, ChildKind.ADMIN_INVITATION)
    guests = ChildRef(WEDDING, ChildKind.GUEST_INVITATION)
    assert can(OWNER, Action.CREATE_CHILD, admins)
    assert not can(CO_ADMIN, Action.CREATE_CHILD, admins)
    assert can(CO_ADMIN, Action.CREATE_CHILD, guests)
    assert not can(GUEST, Action.CREATE_CHILD, guests)


def test_everyone_uploads_and_answers():
    for principal in (OWNER, CO_ADMIN, GUEST, STRANGER_ADMIN):
        assert can(principal, Action.CREATE_CHILD, ChildRef(WEDDING, ChildKind.MEDIA))
        assert can(principal, Action.CREATE_CHILD, ChildRef(WEDDING, ChildKind.ANSWER))
    assert not can(GUEST, Action.CREATE_CHILD, ChildRef(WEDDING, ChildKind.QUESTION))
    assert not can(GUEST, Action.CREATE_CHILD, ChildRef(WEDDING, ChildKind.EVENT))


def test_media_approval_is_manager_only():
    own_pending = MediaRef(id="m1", wedding=WEDDING, uploaded_by="guest", status=MediaStatus.PENDING)
    assert not can(GUEST, Action.UPDATE_ANY, own_pending)
    assert can(CO_ADMIN, Action.UPDATE_ANY, own_pending)
    assert can(OWNER, Action.UPDATE_ANY, own_pending)


def test_media_author_keeps_own_rights():
    own_pending = MediaRef(id="m1", wedding=WEDDING, uploaded_by="guest", status=MediaStatus.PENDING)
    someone_elses = MediaRef(id="m2", wedding=WEDDING, uploaded_by="other", status=MediaStatus.PENDING)
    assert can(GUEST, Action.READ, own_pending)
    assert can(GUEST, Action.DELETE, own_pending)
    assert can(GUEST, Action.UPDATE_OWN, own_pending)
    assert not can(GUEST, Action.READ, someone_elses)
    assert not can(GUEST, Action.DELETE, someone_elses)


def test_approved_media_is_readable_by_guests():
    approved = MediaRef(id="m3", wedding=WEDDING, uploaded_by="other", status=MediaStatus.APPROVED)
    assert can(GUEST, Action.READ, approved)


def test_answers_are_edited_by_their_author_only():
    answer = AnswerRef(id="a1", wedding=WEDDING, answered_by="guest")
    assert can(GUEST, Action.UPDATE_OWN, answer)
    assert not can(OWNER, Action.UPDATE_OWN, answer)
    assert can(OWNER, Action.DELETE, answer)
    assert not can(STRANGER_ADMIN, Action.DELETE, answer)


def test_question_and_event_rules():
    question = QuestionRef(id="q1", wedding=WEDDING, created_by="owner")
    event = EventRef(id="e1", wedding=WEDDING, created_by="co")
    assert can(GUEST, Action.READ, question)
    assert not can(GUEST, Action.UPDATE_OWN, question)
    assert can(CO_ADMIN, Action.DELETE, question)
    assert can(CO_ADMIN, Action.UPDATE_OWN, event)
    assert not can(GUEST, Action.DELETE, event)


def test_guest_row_holder_may_update_rsvp():
    by_email = GuestRef(id="g1", wedding=WEDDING, guest_id=None, guest_email="GUEST@x.com")
    by_id = GuestRef(id="g2", wedding=WEDDING, guest_id="guest", guest_email="old@x.com")
    other = GuestRef(id="g3", wedding=WEDDING, guest_id="someone", guest_email="someone@x.com")
    assert can(GUEST, Action.UPDATE_OWN, by_email)
    assert can(GUEST, Action.UPDATE_OWN, by_id)
    assert not can(GUEST, Action.UPDATE_OWN, other)
    assert not can(GUEST, Action.DELETE, by_id)
    assert can(CO_ADMIN, Action.DELETE, other)


def test_resource_outside_a_wedding_is_denied():
    assert not can(OWNER, Action.READ, object())


def test_authorize_raises_forbidden_with_message():
    with pytest.raises(Forbidden) as exc_info:
        authorize(GUEST, Action.DELETE, WEDDING, "Only the wedding owner can delete it")
    assert exc_info.value.message == "Only the wedding owner can delete it"
    authorize(OWNER, Action.DELETE, WEDDING)


def test_initial_media_status():
    assert initial_media_status(OWNER, WEDDING) is MediaStatus.APPROVED
    assert initial_media_status(CO_ADMIN, WEDDING) is MediaStatus.APPROVED
    assert initial_media_status(GUEST, WEDDING) is MediaStatus.PENDING
    assert initial_media_status(STRANGER_ADMIN, WEDDING) is MediaStatus.PENDING


def test_wedding_ref_from_row():
    ref = WeddingRef.from_row({"id": "w9", "super_admin_id": "o", "wedding_admin_ids": None})
    assert ref.owner_id == "o"
    assert ref.admin_ids == frozenset()
