"""
Shared fixtures: in-memory collaborators standing in for Supabase, the
email API and the media bucket, plus a TestClient wired to them through
app.dependency_overrides.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import copy
import uuid
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.core.errors import Unavailable
from app.core.identity import encode_inline_credential
from app.core.policy import Principal, Role
from app.database.supabase_client import get_store
from app.integrations.email_service import get_email_sender
from app.integrations.identity import IdentityProviderError, ProviderSession, ProviderUser, get_identity_provider
from app.integrations.media_storage import MediaStorageError, StoredObject, get_media_storage
from app.main import app


def _comparable(value):
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return value


class FakeStore:
    """Implements the SupabaseStore interface over dicts."""

    def __init__(self):
        self.tables = {}
        self.fail_inserts = set()

    def rows(self, table):
        return self.tables.setdefault(table, [])

    def _matches(self, row, filters):
        for f in filters:
            current = row.get(f.column)
            if f.op == "eq" and current != f.value:
                return False
            if f.op == "contains" and f.value not in (current or []):
                return False
            if f.op == "in" and current not in f.value:
                return False
            if f.op == "lt" and (current is None or not _comparable(current) < _comparable(f.value)):
                return False
            if f.op == "gte" and (current is None or not _comparable(current) >= _comparable(f.value)):
                return False
        return True

    def get(self, table, filters=(), single=False, order=None, desc=False, columns="*"):
        rows = [copy.deepcopy(r) for r in self.rows(table) if self._matches(r, filters)]
        if order:
            rows.sort(key=lambda r: (r.get(order) is None, _comparable(r.get(order))), reverse=desc)
        if single:
            return rows[0] if rows else None
        return rows

    def insert(self, table, row):
        if table in self.fail_inserts:
            raise Unavailable(f"insert {table}: simulated outage")
        row = copy.deepcopy(row)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        self.rows(table).append(row)
        return copy.deepcopy(row)

    def update(self, table, filters, patch):
        if not filters:
            raise ValueError("update requires at least one filter")
        updated = []
        for row in self.rows(table):
            if self._matches(row, filters):
                row.update(copy.deepcopy(patch))
                updated.append(copy.deepcopy(row))
        return updated

    def delete(self, table, filters):
        if not filters:
            raise ValueError("delete requires at least one filter")
        keep = [r for r in self.rows(table) if not self._matches(r, filters)]
        removed = len(self.rows(table)) - len(keep)
        self.tables[table] = keep
        return removed


class FakeIdentityProvider:
    def __init__(self):
        self.accounts = {}  # email -> (id, password)
        self.tokens = {}  # token -> ProviderUser
        self.deleted = []

    def _issue(self, user):
        token = f"tok-{uuid.uuid4().hex}"
        self.tokens[token] = user
        return token

    def register(self, email, password, user_id=None):
        user = ProviderUser(provider_user_id=user_id or str(uuid.uuid4()), email=email)
        self.accounts[email] = (user, password)
        return user

    def exchange(self, token):
        if token not in self.tokens:
            raise IdentityProviderError("Invalid or expired token")
        return self.tokens[token]

    def sign_in(self, email, password):
        account = self.accounts.get(email)
        if account is None or account[1] != password:
            raise IdentityProviderError("Invalid login credentials")
        return ProviderSession(user=account[0], access_token=self._issue(account[0]))

    def sign_up(self, email, password, name):
        if email in self.accounts:
            raise IdentityProviderError("User already registered")
        user = self.register(email, password)
        return ProviderSession(user=user, access_token=self._issue(user))

    def create_user(self, email, password, name):
        if email in self.accounts:
            raise IdentityProviderError("A user with this email address has already been registered")
        return self.register(email, password)

    def delete_user(self, provider_user_id):
        self.deleted.append(provider_user_id)
        self.accounts = {e: a for e, a in self.accounts.items() if a[0].provider_user_id != provider_user_id}
        return True

    def sign_out(self):
        pass


class FakeEmailSender:
    def __init__(self):
        self.sent = []
        self.fail = False

    def _record(self, kind, to, **details):
        self.sent.append({"kind": kind, "to": to, **details})
        return not self.fail

    def send_admin_invitation(self, to, wedding, admin_name):
        return self._record("admin_invitation", to, wedding_id=wedding["id"])

    def send_guest_invitation(self, to, guest_name, wedding, guest_row_id):
        return self._record("guest_invitation", to, wedding_id=wedding["id"], guest_row_id=guest_row_id)

    def send_welcome(self, to, name):
        return self._record("welcome", to)


class FakeMediaStorage:
    def __init__(self):
        self.objects = {}
        self.fail = False

    def upload(self, contents, path, content_type):
        if self.fail:
            raise MediaStorageError("bucket unavailable")
        self.objects[path] = contents
        return StoredObject(path=path, url=f"https://cdn.test/{path}")

    def delete(self, path):
        return self.objects.pop(path, None) is not None


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def identity_provider():
    return FakeIdentityProvider()


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def media_storage():
    return FakeMediaStorage()


@pytest.fixture
def client(store, identity_provider, email_sender, media_storage):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_media_storage] = lambda: media_storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def seed_user(store, email, role=Role.GUEST, name=None, user_id=None):
    return store.insert("users", {
        "id": user_id or str(uuid.uuid4()),
        "email": email.lower(),
        "name": name or email.split("@")[0],
        "role": role.value,
    })


def seed_wedding(store, owner, admin_ids=(), name="Ana & Ben", **fields):
    row = {
        "name": name,
        "date": "2027-06-12",
        "location": "Lisbon",
        "code": "ANABEN0001",
        "subdomain": f"ana-ben-{uuid.uuid4().hex[:6]}",
        "status": "active",
        "super_admin_id": owner["id"],
        "wedding_admin_ids": list(admin_ids),
    }
    row.update(fields)
    return store.insert("weddings", row)


def principal_for(user):
    return Principal(id=user["id"], email=user["email"], role=Role(user["role"]), name=user.get("name"))


def auth_headers(user):
    """Inline session cookie for the given users row"""
    return {"Cookie": f"session-token={encode_inline_credential(principal_for(user))}"}
