# session_guard/infrastructure/security/token_hasher.py
import base64
import hashlib
import hmac
import os

from session_guard.config.settings import settings


class TokenHasher:
    SECRET_BYTES = 32  # 256 bits
    HASH_HEX_LENGTH = 64

    @classmethod
    def generate_opaque_secret(cls) -> str:
        raw = os.urandom(cls.SECRET_BYTES)
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")

    @classmethod
    def hash_token(cls, secret: str) -> str:
        if not secret:
            raise ValueError("Refresh token vazio.")
        return hashlib.sha256(secret.encode("utf-8")).hexdigest()

    @classmethod
    def hash_ip(cls, ip_address: str, *, key: str | None = None) -> str:
        # HMAC com chave fixa: determinístico (mesmo IP => mesmo hash) e não reversível sem a chave
        secret = (key or settings.ip_hash_secret).encode("utf-8")
        return hmac.new(secret, ip_address.strip().encode("utf-8"), hashlib.sha256).hexdigest()

    @classmethod
    def is_well_formed_hash(cls, value: str) -> bool:
        if len(value) != cls.HASH_HEX_LENGTH:
            return False
        try:
            int(value, 16)
        except ValueError:
            return False
        return True

    @staticmethod
    def prefix(token_hash: str, length: int = 10) -> str:
        return f"{token_hash[:length]}..."
