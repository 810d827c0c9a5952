import logging

import pytest

from session_guard.config.logging_config import SECURITY_LOGGER_NAME
from session_guard.core.exceptions import FamilyLimitExceededError, RotationFailedError
from session_guard.infrastructure.security.token_hasher import TokenHasher


def _security_events(caplog, event_type):
    return [
        r.security_event
        for r in caplog.records
        if r.name == SECURITY_LOGGER_NAME and r.security_event["event_type"] == event_type
    ]


def test_revoke_family_is_idempotent(svc):
    family = svc.revocation.create_family("user-1")
    svc.rotation.rotate(family.credential.token_hash)

    assert svc.revocation.revoke_family(family.family_id, "USER_LOGOUT") == 1
    assert svc.revocation.revoke_family(family.family_id, "USER_LOGOUT") == 0

    rows = svc.repo.list_by_family(family.family_id)
    assert all(r.revoked_at is not None for r in rows)
    assert [r.reason for r in rows] == ["ROTATED", "USER_LOGOUT"]


def test_revoke_unknown_family_returns_zero(svc):
    assert svc.revocation.revoke_family("does-not-exist", "ADMIN") == 0


def test_revoke_user_revokes_every_active_family(svc, clock):
    families = [svc.revocation.create_family("user-1") for _ in range(3)]
    other = svc.revocation.create_family("user-2")

    # uma família com duas rotações continua tendo só um token ativo
    first = svc.rotation.rotate(families[0].credential.token_hash)
    svc.rotation.rotate(first.new.token_hash)

    revoked = svc.revocation.revoke_user("user-1", "PASSWORD_RESET")

    assert revoked == 3
    assert svc.repo.count_active_families("user-1", now=clock.now()) == 0
    assert svc.repo.get_by_hash(other.credential.token_hash).revoked_at is None
    for family in families:
        assert all(r.revoked_at is not None for r in svc.repo.list_by_family(family.family_id))


def test_revoke_user_without_tokens_returns_zero(svc):
    assert svc.revocation.revoke_user("nobody", "ADMIN") == 0


def test_family_cap_blocks_eleventh_login(svc, clock, caplog):
    for _ in range(10):
        svc.revocation.create_family("user-1")

    caplog.set_level(logging.INFO, logger=SECURITY_LOGGER_NAME)
    with pytest.raises(FamilyLimitExceededError) as exc:
        svc.revocation.create_family("user-1")

    assert exc.value.current_count == 10
    assert exc.value.max_allowed == 10
    assert exc.value.status_code == 429
    assert _security_events(caplog, "FAMILY_LIMIT_EXCEEDED")


def test_family_cap_ignores_revoked_and_expired_families(svc, clock):
    first = svc.revocation.create_family("user-1")
    for _ in range(9):
        svc.revocation.create_family("user-1")

    svc.revocation.revoke_family(first.family_id, "USER_LOGOUT")
    svc.revocation.create_family("user-1")

    clock.advance(days=8)
    assert svc.revocation.create_family("user-1").family_id


def test_create_family_stores_only_ip_hash(svc):
    a = svc.revocation.create_family("user-1", user_agent="Mozilla/5.0 (iPhone)", ip_address="203.0.113.7")
    b = svc.revocation.create_family("user-1", ip_address="203.0.113.7")

    row = svc.repo.get_by_hash(a.credential.token_hash)
    assert row.ip_hash == TokenHasher.hash_ip("203.0.113.7")
    assert row.ip_hash != "203.0.113.7"
    assert "203.0.113.7" not in (row.device_info or "") + (row.user_agent or "")
    assert a.family.ip_hash == b.family.ip_hash
    assert a.family.location == "Mobile (iOS)"
    assert a.family_id != b.family_id


def test_create_family_clips_long_metadata(svc):
    family = svc.revocation.create_family("user-1", device_info="x" * 400)

    assert len(svc.repo.get_by_hash(family.credential.token_hash).device_info) == 255


def test_created_secret_is_never_persisted(svc):
    family = svc.revocation.create_family("user-1")
    row = svc.repo.get_by_hash(family.credential.token_hash)

    assert family.secret not in (row.token_hash, row.jti)
    assert row.token_hash == TokenHasher.hash_token(family.secret)


def test_handle_reuse_revokes_family_and_emits_critical_event(svc, caplog):
    family = svc.revocation.create_family("user-1")
    token_hash = family.credential.token_hash

    caplog.set_level(logging.INFO, logger=SECURITY_LOGGER_NAME)
    revoked = svc.revocation.handle_reuse(family.family_id, token_hash, "ROTATED_TOKEN_PRESENTED")

    assert revoked == 1
    assert svc.repo.get_by_hash(token_hash).reason == "REUSE_DETECTED_ROTATED_TOKEN_PRESENTED"

    [event] = _security_events(caplog, "CRITICAL_TOKEN_REUSE")
    assert event["family_id"] == family.family_id
    assert event["credential_hash_prefix"] == f"{token_hash[:16]}..."
    assert token_hash not in caplog.text


def test_handle_reuse_swallows_revocation_failure(svc, monkeypatch, caplog):
    family = svc.revocation.create_family("user-1")

    def broken(family_id, reason):
        raise RotationFailedError("db down")

    monkeypatch.setattr(svc.revocation, "revoke_family", broken)
    caplog.set_level(logging.INFO, logger=SECURITY_LOGGER_NAME)

    assert svc.revocation.handle_reuse(family.family_id, family.credential.token_hash, "TEST") is None
    [event] = _security_events(caplog, "CRITICAL_TOKEN_REUSE")
    assert event["context"]["revoked_tokens"] is None



def test_family_cap_is_rechecked_after_insert(svc, monkeypatch):
    for _ in range(9):
        svc.revocation.create_family("user-1")

    original_count = svc.repo.count_active_families
    raced = []

    def count_then_race(user_id, *, now):
        count = original_count(user_id, now=now)
        if not raced:
            # outro login grava a décima família logo depois da primeira contagem
            raced.append(True)
            model, _ = svc.issuer.mint(user_id=user_id, family_id=svc.issuer.new_family_id())
            svc.repo.add(model)
        return count

    monkeypatch.setattr(svc.repo, "count_active_families", count_then_race)

    with pytest.raises(FamilyLimitExceededError) as exc:
        svc.revocation.create_family("user-1")

    assert exc.value.current_count == 10
    assert exc.value.max_allowed == 10
