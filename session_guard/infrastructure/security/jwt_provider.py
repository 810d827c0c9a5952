# session_guard/infrastructure/security/jwt_provider.py

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt

from session_guard.config.settings import settings
from session_guard.core.exceptions import UnauthorizedError


class JwtProvider:
    """Emite e valida só o access token curto; o refresh token é opaco e não passa por aqui."""

    def __init__(self, *, secret: str | None = None, access_minutes: int | None = None) -> None:
        self._secret = secret or settings.jwt_secret
        self._issuer = settings.jwt_issuer
        self._audience = settings.jwt_audience
        self._algorithm = "HS256"
        self._access_minutes = access_minutes or settings.jwt_access_minutes

    @property
    def access_token_ttl_seconds(self) -> int:
        return self._access_minutes * 60

    def issue_access_token(
        self,
        *,
        subject: str,
        role: str | None = None,
        email: str | None = None,
        family_id: str | None = None,
    ) -> str:
        now = datetime.now(tz=timezone.utc)
        exp = now + timedelta(minutes=self._access_minutes)

        claims = {
            "iss": self._issuer,
            "aud": self._audience,
            "sub": str(subject),
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
            "jti": uuid4().hex,
            "typ": "access",
        }
        if role is not None:
            claims["role"] = role
        if email is not None:
            claims["email"] = email
        if family_id is not None:
            # "fid" liga o access token à sessão (família) que o originou
            claims["fid"] = family_id

        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> dict:
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                options={"require": ["exp", "iat", "sub", "jti", "typ"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise UnauthorizedError("Token expirado.") from e
        except jwt.InvalidTokenError as e:
            raise UnauthorizedError("Token inválido.") from e
