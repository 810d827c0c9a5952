from datetime import datetime
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import session_guard.infrastructure.database.models  # noqa: F401
from session_guard.core.interfaces.clock import FixedClock
from session_guard.infrastructure.database.base_model import BaseModel
from session_guard.infrastructure.rate_limit.memory_counter_store import MemoryCounterStore
from session_guard.repositories.refresh_token_repository import RefreshTokenRepository
from session_guard.services.credential_issuer import CredentialIssuer
from session_guard.services.refresh_token_service import RefreshTokenService
from session_guard.services.security_event_service import SecurityEventLogger
from session_guard.services.session_service import SessionService
from session_guard.services.token_revocation_service import TokenRevocationService
from session_guard.services.token_rotation_service import TokenRotationService
from session_guard.services.token_security_service import TokenSecurityService

T0 = datetime(2025, 3, 10, 12, 0, 0)

RATE_LIMIT = 5
RATE_WINDOW_SECONDS = 60
MAX_FAMILIES = 10
TTL_SECONDS = 7 * 24 * 60 * 60


def sqlite_engine():
    return create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def engine():
    engine = sqlite_engine()
    BaseModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    with factory() as s:
        yield s
        s.rollback()


@pytest.fixture
def counter_store(clock):
    return MemoryCounterStore(clock=clock, cleanup_probability=0)


@pytest.fixture
def svc(session, clock, counter_store):
    repo = RefreshTokenRepository(session)
    events = SecurityEventLogger(clock=clock)
    issuer = CredentialIssuer(clock=clock, ttl_seconds=TTL_SECONDS)

    security = TokenSecurityService(
        repo=repo,
        counter_store=counter_store,
        events=events,
        clock=clock,
        max_attempts=RATE_LIMIT,
        window_seconds=RATE_WINDOW_SECONDS,
    )
    revocation = TokenRevocationService(
        repo=repo,
        issuer=issuer,
        events=events,
        clock=clock,
        max_families_per_user=MAX_FAMILIES,
    )
    sessions = SessionService(repo=repo, events=events, clock=clock)
    rotation = TokenRotationService(
        repo=repo,
        issuer=issuer,
        security=security,
        revocation=revocation,
        clock=clock,
    )
    facade = RefreshTokenService(
        repo=repo,
        rotation=rotation,
        revocation=revocation,
        sessions=sessions,
        security=security,
    )

    return SimpleNamespace(
        session=session,
        repo=repo,
        events=events,
        issuer=issuer,
        security=security,
        revocation=revocation,
        sessions=sessions,
        rotation=rotation,
        facade=facade,
    )
