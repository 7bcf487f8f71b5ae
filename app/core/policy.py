"""
Access policy for every wedding-scoped resource.

A principal's rights on a wedding come from one of three tiers, recomputed on
every call and never cached:

    owner     principal.id == wedding.owner_id
    co_admin  principal.id in wedding.admin_ids and principal.role == admin
    guest     everyone else (read + self-authored writes)

Ownership implies full rights; co-admins have the same rights except deleting
the wedding and inviting other admins; every principal keeps rights over the
records it authored. Route handlers load the resource first (absent -> NotFound)
and only then call authorize() (denied -> Forbidden).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional, Tuple, Type

from app.core.errors import Forbidden


class Role(str, Enum):
    GUEST = "guest"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"
    APPLICATION_ADMIN = "application_admin"


class Tier(str, Enum):
    OWNER = "owner"
    CO_ADMIN = "co_admin"
    GUEST = "guest"


class Action(str, Enum):
    READ = "read"
    CREATE_CHILD = "create_child"
    UPDATE_OWN = "update_own"
    UPDATE_ANY = "update_any"
    DELETE = "delete"


class ChildKind(str, Enum):
    MEDIA = "media"
    QUESTION = "question"
    EVENT = "event"
    ANSWER = "answer"
    GUEST_INVITATION = "guest_invitation"
    ADMIN_INVITATION = "admin_invitation"


class MediaStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"


@dataclass(frozen=True)
class Principal:
    id: str
    email: str
    role: Role
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "email": self.email, "name": self.name, "role": self.role.value}


# ---------------------------------------------------------------------------
# Resource references: only the fields the policy looks at
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WeddingRef:
    id: str
    owner_id: Optional[str]
    admin_ids: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "WeddingRef":
        return cls(
            id=row["id"],
            owner_id=row.get("super_admin_id"),
            admin_ids=frozenset(row.get("wedding_admin_ids") or ()),
        )


@dataclass(frozen=True)
class ChildRef:
    """The collection of `kind` records under a wedding (listed or added to)."""
    wedding: WeddingRef
    kind: ChildKind


@dataclass(frozen=True)
class MediaRef:
    id: str
    wedding: WeddingRef
    uploaded_by: Optional[str]
    status: MediaStatus

    @classmethod
    def from_row(cls, row: Mapping[str, Any], wedding: WeddingRef) -> "MediaRef":
        return cls(
            id=row["id"],
            wedding=wedding,
            uploaded_by=row.get("uploaded_by"),
            status=MediaStatus(row.get("status") or MediaStatus.PENDING.value),
        )


@dataclass(frozen=True)
class QuestionRef:
    id: str
    wedding: WeddingRef
    created_by: Optional[str]

    @classmethod
    def from_row(cls, row: Mapping[str, Any], wedding: WeddingRef) -> "QuestionRef":
        return cls(id=row["id"], wedding=wedding, created_by=row.get("created_by"))


@dataclass(frozen=True)
class AnswerRef:
    id: str
    wedding: WeddingRef
    answered_by: Optional[str]

    @classmethod
    def from_row(cls, row: Mapping[str, Any], wedding: WeddingRef) -> "AnswerRef":
        return cls(id=row["id"], wedding=wedding, answered_by=row.get("answered_by"))


@dataclass(frozen=True)
class EventRef:
    id: str
    wedding: WeddingRef
    created_by: Optional[str]

    @classmethod
    def from_row(cls, row: Mapping[str, Any], wedding: WeddingRef) -> "EventRef":
        return cls(id=row["id"], wedding=wedding, created_by=row.get("created_by"))


@dataclass(frozen=True)
class GuestRef:
    """A guest-list (RSVP) row."""
    id: str
    wedding: WeddingRef
    guest_id: Optional[str]
    guest_email: Optional[str]

    @classmethod
    def from_row(cls, row: Mapping[str, Any], wedding: WeddingRef) -> "GuestRef":
        return cls(
            id=row["id"],
            wedding=wedding,
            guest_id=row.get("guest_id"),
            guest_email=row.get("guest_email"),
        )


@dataclass(frozen=True)
class InvitationRef:
    id: str
    wedding: WeddingRef

    @classmethod
    def from_row(cls, row: Mapping[str, Any], wedding: WeddingRef) -> "InvitationRef":
        return cls(id=row["id"], wedding=wedding)


# ---------------------------------------------------------------------------
# Tier computation
# ---------------------------------------------------------------------------

def effective_tier(principal: Principal, wedding: WeddingRef) -> Tier:
    if wedding.owner_id is not None and principal.id == wedding.owner_id:
        return Tier.OWNER
    if principal.role is Role.ADMIN and principal.id in wedding.admin_ids:
        return Tier.CO_ADMIN
    return Tier.GUEST


def is_wedding_admin(principal: Principal, wedding: WeddingRef) -> bool:
    """Owner or co-admin."""
    return effective_tier(principal, wedding) in _MANAGERS


# ---------------------------------------------------------------------------
# Decision table
# ---------------------------------------------------------------------------

_ALL = frozenset(Tier)
_MANAGERS = frozenset({Tier.OWNER, Tier.CO_ADMIN})
_OWNER = frozenset({Tier.OWNER})
_NONE: FrozenSet[Tier] = frozenset()

# Tiers allowed regardless of authorship
_TIER_RULES: Dict[Tuple[Type, Action], FrozenSet[Tier]] = {
    (WeddingRef, Action.READ): _ALL,
    (WeddingRef, Action.UPDATE_OWN): _MANAGERS,
    (WeddingRef, Action.UPDATE_ANY): _MANAGERS,
    (WeddingRef, Action.DELETE): _OWNER,

    (MediaRef, Action.READ): _MANAGERS,
    (MediaRef, Action.UPDATE_OWN): _MANAGERS,
    (MediaRef, Action.UPDATE_ANY): _MANAGERS,  # approval
    (MediaRef, Action.DELETE): _MANAGERS,

    (QuestionRef, Action.READ): _ALL,
    (QuestionRef, Action.UPDATE_OWN): _MANAGERS,
    (QuestionRef, Action.UPDATE_ANY): _MANAGERS,
    (QuestionRef, Action.DELETE): _MANAGERS,

    (AnswerRef, Action.READ): _ALL,
    (AnswerRef, Action.UPDATE_OWN): _NONE,
    (AnswerRef, Action.UPDATE_ANY): _NONE,
    (AnswerRef, Action.DELETE): _MANAGERS,

    (EventRef, Action.READ): _ALL,
    (EventRef, Action.UPDATE_OWN): _MANAGERS,
    (EventRef, Action.UPDATE_ANY): _MANAGERS,
    (EventRef, Action.DELETE): _MANAGERS,

    (GuestRef, Action.READ): _MANAGERS,
    (GuestRef, Action.UPDATE_OWN): _MANAGERS,
    (GuestRef, Action.UPDATE_ANY): _MANAGERS,
    (GuestRef, Action.DELETE): _MANAGERS,

    (InvitationRef, Action.READ): _MANAGERS,
    (InvitationRef, Action.DELETE): _MANAGERS,
}

# ChildRef + CREATE_CHILD creates one record; ChildRef + READ lists the collection
_CHILD_RULES: Dict[Tuple[ChildKind, Action], FrozenSet[Tier]] = {
    (ChildKind.MEDIA, Action.CREATE_CHILD): _ALL,
    (ChildKind.ANSWER, Action.CREATE_CHILD): _ALL,
    (ChildKind.QUESTION, Action.CREATE_CHILD): _MANAGERS,
    (ChildKind.EVENT, Action.CREATE_CHILD): _MANAGERS,
    (ChildKind.GUEST_INVITATION, Action.CREATE_CHILD): _MANAGERS,
    (ChildKind.ADMIN_INVITATION, Action.CREATE_CHILD): _OWNER,

    (ChildKind.MEDIA, Action.READ): _ALL,  # guests get the approved-only view
    (ChildKind.ANSWER, Action.READ): _ALL,
    (ChildKind.QUESTION, Action.READ): _ALL,
    (ChildKind.EVENT, Action.READ): _ALL,
    (ChildKind.GUEST_INVITATION, Action.READ): _MANAGERS,
    (ChildKind.ADMIN_INVITATION, Action.READ): _MANAGERS,
}


def _is_guest_row_holder(principal: Principal, resource: GuestRef) -> bool:
    if resource.guest_id and resource.guest_id == principal.id:
        return True
    return bool(resource.guest_email) and resource.guest_email.lower() == principal.email.lower()


# Authorship: which (resource, action) pairs the author keeps regardless of tier
_AUTHOR_RULES: Dict[Tuple[Type, Action], Callable[[Principal, Any], bool]] = {
    (MediaRef, Action.UPDATE_OWN): lambda p, r: r.uploaded_by == p.id,
    (MediaRef, Action.DELETE): lambda p, r: r.uploaded_by == p.id,
    (MediaRef, Action.READ): lambda p, r: r.uploaded_by == p.id or r.status is MediaStatus.APPROVED,
    (QuestionRef, Action.UPDATE_OWN): lambda p, r: r.created_by == p.id,
    (QuestionRef, Action.DELETE): lambda p, r: r.created_by == p.id,
    (AnswerRef, Action.UPDATE_OWN): lambda p, r: r.answered_by == p.id,
    (AnswerRef, Action.DELETE): lambda p, r: r.answered_by == p.id,
    (EventRef, Action.UPDATE_OWN): lambda p, r: r.created_by == p.id,
    (EventRef, Action.DELETE): lambda p, r: r.created_by == p.id,
    (GuestRef, Action.READ): _is_guest_row_holder,
    (GuestRef, Action.UPDATE_OWN): _is_guest_row_holder,
}


def can(principal: Principal, action: Action, resource: Any) -> bool:
    """Pure decision: no I/O, only the fields already loaded on `resource`."""
    if isinstance(resource, ChildRef):
        allowed = _CHILD_RULES.get((resource.kind, action), _NONE)
        return effective_tier(principal, resource.wedding) in allowed

    if isinstance(resource, WeddingRef):
        wedding = resource
        if action is Action.READ and principal.role is Role.APPLICATION_ADMIN:
            return True
    else:
        wedding = getattr(resource, "wedding", None)
        if not isinstance(wedding, WeddingRef):
            return False

    allowed = _TIER_RULES.get((type(resource), action))
    if allowed is None:
        return False
    if effective_tier(principal, wedding) in allowed:
        return True
    author_rule = _AUTHOR_RULES.get((type(resource), action))
    return bool(author_rule and author_rule(principal, resource))


def authorize(principal: Principal, action: Action, resource: Any, message: str = None) -> None:
    if not can(principal, action, resource):
        raise Forbidden(message)


def initial_media_status(principal: Principal, wedding: WeddingRef) -> MediaStatus:
    """Uploads by the owner or a co-admin skip moderation."""
    if is_wedding_admin(principal, wedding):
        return MediaStatus.APPROVED
    return MediaStatus.PENDING
