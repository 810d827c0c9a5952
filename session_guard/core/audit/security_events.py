# session_guard/core/audit/security_events.py

class SecurityEventType:
    FAMILY_CREATED = "FAMILY_CREATED"
    FAMILY_TOKENS_REVOKED = "FAMILY_TOKENS_REVOKED"
    USER_TOKENS_REVOKED = "USER_TOKENS_REVOKED"
    CRITICAL_TOKEN_REUSE = "CRITICAL_TOKEN_REUSE"
    ROTATION_RATE_LIMITED = "ROTATION_RATE_LIMITED"
    FAMILY_LIMIT_EXCEEDED = "FAMILY_LIMIT_EXCEEDED"
    EXPIRED_TOKENS_SWEPT = "EXPIRED_TOKENS_SWEPT"


class RevocationReason:
    ROTATED = "ROTATED"
    USER_LOGOUT = "USER_LOGOUT"
    USER_LOGOUT_ALL = "USER_LOGOUT_ALL"
    USER_REVOCATION = "USER_REVOCATION"
    EXPIRED = "EXPIRED"
    PASSWORD_RESET = "PASSWORD_RESET"
    ADMIN = "ADMIN"

    REUSE_DETECTED_PREFIX = "REUSE_DETECTED_"

    @classmethod
    def reuse_detected(cls, context: str) -> str:
        return f"{cls.REUSE_DETECTED_PREFIX}{context}"
