from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from adminauth.core.errors import ConflictError, LimitError
from adminauth.models.admin_user import AdminUser
from adminauth.models.password_reset_token import PasswordResetToken
from adminauth.services.admin_store import AdminCredentialStore
from adminauth.services.passwords import verify_password
from adminauth.services.reset_tokens import save_reset_token
from tests.fixtures_data import CEILING_EMAILS, OVER_CEILING_EMAIL
from tests.support import build_session


def _store(db, max_admins=4):
    return AdminCredentialStore(db, max_admins=max_admins, bcrypt_rounds=4)


def test_create_hashes_password_and_assigns_slot():
    db = build_session()
    store = _store(db)

    admin = store.create("a@x.com", "pw1")

    assert admin.id
    assert admin.slot == 1
    assert admin.role == "admin"
    assert admin.password_hash != "pw1"
    assert verify_password("pw1", admin.password_hash)
    assert store.find_by_email("a@x.com").id == admin.id
    assert store.find_by_id(admin.id).email == "a@x.com"


def test_find_by_email_is_exact_and_case_sensitive():
    db = build_session()
    store = _store(db)
    store.create("a@x.com", "pw1")

    assert store.find_by_email("A@x.com") is None
    assert store.find_by_email("a@x.co") is None


def test_create_rejects_duplicate_email_at_store_level():
    db = build_session()
    store = _store(db)
    store.create("a@x.com", "pw1")

    with pytest.raises(ConflictError):
        store.create("a@x.com", "pw2")

    assert store.count() == 1


def test_create_refuses_beyond_ceiling():
    db = build_session()
    store = _store(db)
    for email in CEILING_EMAILS:
        store.create(email, "pw")

    with pytest.raises(LimitError):
        store.create(OVER_CEILING_EMAIL, "pw")

    assert store.count() == 4


def test_racing_registration_for_last_slot_cannot_exceed_ceiling(monkeypatch):
    db = build_session()
    store = _store(db)
    for email in CEILING_EMAILS[:3]:
        store.create(email, "pw")

    # Simulate a concurrent registration that took slot 4 after our read.
    rival = _store(db)
    stale_reads = iter([4])
    original = AdminCredentialStore._next_free_slot

    def stale_next_free_slot(self):
        try:
            slot = next(stale_reads)
        except StopIteration:
            return original(self)
        rival.create(CEILING_EMAILS[3], "pw")
        return slot

    monkeypatch.setattr(AdminCredentialStore, "_next_free_slot", stale_next_free_slot)

    with pytest.raises(LimitError):
        store.create(OVER_CEILING_EMAIL, "pw")

    assert db.query(AdminUser).count() == 4
    assert store.find_by_email(OVER_CEILING_EMAIL) is None


def test_racing_registration_retries_on_another_free_slot(monkeypatch):
    db = build_session()
    store = _store(db)
    store.create(CEILING_EMAILS[0], "pw")

    rival = _store(db)
    stale_reads = iter([2])
    original = AdminCredentialStore._next_free_slot

    def stale_next_free_slot(self):
        try:
            slot = next(stale_reads)
        except StopIteration:
            return original(self)
        rival.create(CEILING_EMAILS[1], "pw")
        return slot

    monkeypatch.setattr(AdminCredentialStore, "_next_free_slot", stale_next_free_slot)

    admin = store.create(CEILING_EMAILS[2], "pw")

    assert admin.slot == 3
    assert store.count() == 3


def test_update_password_rehashes_and_bumps_updated_at():
    db = build_session()
    store = _store(db)
    admin = store.create("a@x.com", "pw1")
    admin.updated_at = datetime(2000, 1, 1)
    db.commit()

    updated = store.update_password(admin.id, "new-pw")
    db.commit()

    assert updated is not None
    assert verify_password("new-pw", updated.password_hash)
    assert not verify_password("pw1", updated.password_hash)
    assert updated.updated_at > datetime(2000, 1, 1)


def test_update_password_returns_none_for_unknown_admin():
    db = build_session()

    assert _store(db).update_password("missing-id", "pw") is None


def test_deleting_admin_cascades_to_reset_tokens():
    db = build_session()
    store = _store(db)
    admin = store.create("a@x.com", "pw1")
    save_reset_token(db, admin.id, "token-1", datetime.utcnow() + timedelta(hours=1))
    db.commit()

    db.delete(admin)
    db.commit()

    assert db.query(PasswordResetToken).count() == 0
