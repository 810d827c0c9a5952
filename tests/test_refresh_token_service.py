import logging

import pytest

from session_guard.core.exceptions import ForbiddenError, NotFoundError, RotationFailedError


def test_family_of_requires_ownership(svc):
    family = svc.revocation.create_family("user-1")

    assert svc.facade.family_of(refresh_token=family.secret, user_id="user-1") == family.family_id
    assert svc.facade.family_of(refresh_token=family.secret, user_id="user-2") is None
    assert svc.facade.family_of(refresh_token="unknown", user_id="user-1") is None


def test_logout_family_rejects_foreign_family(svc):
    family = svc.revocation.create_family("user-1")

    with pytest.raises(ForbiddenError):
        svc.facade.logout_family(user_id="user-2", family_id=family.family_id)

    assert svc.facade.logout_family(user_id="user-1", family_id=family.family_id) == 1
    assert svc.repo.get_by_hash(family.credential.token_hash).reason == "USER_LOGOUT"


def test_logout_unknown_family_is_noop(svc):
    assert svc.facade.logout_family(user_id="user-1", family_id="missing") == 0


def test_logout_all(svc):
    svc.revocation.create_family("user-1")
    svc.revocation.create_family("user-1")

    assert svc.facade.logout_all(user_id="user-1") == 2
    assert svc.facade.list_families(user_id="user-1") == []


def test_revoke_session_guards_current_and_foreign(svc):
    current = svc.revocation.create_family("user-1")
    other = svc.revocation.create_family("user-1")
    foreign = svc.revocation.create_family("user-2")

    with pytest.raises(ForbiddenError):
        svc.facade.revoke_session(user_id="user-1", family_id=current.family_id, current_family_id=current.family_id)

    with pytest.raises(NotFoundError):
        svc.facade.revoke_session(user_id="user-1", family_id=foreign.family_id, current_family_id=current.family_id)

    revoked = svc.facade.revoke_session(user_id="user-1", family_id=other.family_id, current_family_id=current.family_id)
    assert revoked == 1
    assert svc.repo.get_by_hash(other.credential.token_hash).reason == "USER_REVOCATION"
    assert svc.repo.get_by_hash(current.credential.token_hash).revoked_at is None


def test_revoke_user_best_effort_logs_and_returns_none(svc, monkeypatch, caplog):
    def broken(user_id, reason):
        raise RotationFailedError("db down")

    monkeypatch.setattr(svc.revocation, "revoke_user", broken)

    with caplog.at_level(logging.CRITICAL):
        assert svc.facade.revoke_user_best_effort(user_id="user-1") is None

    assert any(r.levelno == logging.CRITICAL for r in caplog.records)


def test_revoke_user_best_effort_returns_count(svc):
    svc.revocation.create_family("user-1")
    assert svc.facade.revoke_user_best_effort(user_id="user-1") == 1


def test_cleanup_rate_limits_prunes_expired_windows(svc, clock, counter_store):
    svc.security.check_rate_limit("fam-1", "rotation")
    clock.advance(seconds=61)

    assert svc.facade.cleanup_rate_limits() == 1
    assert len(counter_store) == 0
