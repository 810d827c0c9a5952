# session_guard/entities/refresh_token.py
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class ValidationReason(str, Enum):
    VALID_AND_ROTATED = "VALID_AND_ROTATED"
    TOKEN_REUSE_DETECTED = "TOKEN_REUSE_DETECTED"
    TOKEN_REVOKED = "TOKEN_REVOKED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"


@dataclass(frozen=True)
class RotationContext:
    device_info: Optional[str] = None
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None


@dataclass(frozen=True)
class OldTokenSummary:
    jti: str
    family_id: str
    user_id: str
    revoked: bool


@dataclass(frozen=True)
class NewCredential:
    # segredo bruto: só existe em memória e volta para o cliente
    secret: str
    token_hash: str
    jti: str
    family_id: str
    user_id: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class RotationResult:
    old: OldTokenSummary
    new: NewCredential


@dataclass(frozen=True)
class IdentityClaims:
    user_id: str
    family_id: str
    jti: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class TokenValidationResult:
    is_valid: bool
    reason: ValidationReason
    should_revoke_family: bool = False
    family_id: Optional[str] = None
    identity_claims: Optional[IdentityClaims] = None
    rotation: Optional[RotationResult] = None

    @property
    def new_secret(self) -> Optional[str]:
        return self.rotation.new.secret if self.rotation else None


@dataclass(frozen=True)
class FamilyInfo:
    family_id: str
    user_id: str
    device_info: Optional[str]
    user_agent: Optional[str]
    ip_hash: Optional[str]
    location: Optional[str]
    created_at: datetime
    last_used_at: datetime
    expires_at: datetime
    is_current: bool = False


@dataclass(frozen=True)
class NewFamily:
    family: FamilyInfo
    credential: NewCredential

    @property
    def family_id(self) -> str:
        return self.family.family_id

    @property
    def secret(self) -> str:
        return self.credential.secret
