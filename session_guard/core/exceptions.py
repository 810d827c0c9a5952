# session_guard/core/exceptions.py

class AppError(Exception):
    def __init__(self, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, status_code=404)


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status_code=401)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, status_code=403)


# -------------------------
# Refresh tokens / famílias
# -------------------------

class TokenRotationError(AppError):
    def __init__(self, message: str, *, status_code: int = 401) -> None:
        super().__init__(message, status_code=status_code)


class InvalidCredentialError(TokenRotationError):
    """Token inexistente, revogado (fora do caminho de reuso), expirado ou malformado."""

    def __init__(self, message: str = "Refresh token inválido.") -> None:
        super().__init__(message, status_code=401)


class RotationConflictError(InvalidCredentialError):
    """Outra requisição rotacionou o mesmo token primeiro (update condicional afetou 0 linhas)."""

    def __init__(self, family_id: str, message: str = "Refresh token já foi rotacionado.") -> None:
        super().__init__(message)
        self.family_id = family_id


class TokenReuseDetectedError(TokenRotationError):
    """Token já substituído foi reapresentado; a família inteira já foi revogada."""

    def __init__(
        self,
        family_id: str | None = None,
        message: str = "Sessão comprometida. Entre novamente em todos os dispositivos.",
    ) -> None:
        super().__init__(message, status_code=401)
        self.family_id = family_id


class FamilyCompromisedError(TokenRotationError):
    def __init__(
        self,
        family_id: str | None = None,
        user_id: str | None = None,
        message: str = "Sessão comprometida. Entre novamente em todos os dispositivos.",
    ) -> None:
        super().__init__(message, status_code=401)
        self.family_id = family_id
        self.user_id = user_id


class TokenExpiredError(TokenRotationError):
    def __init__(self, message: str = "Sessão inválida ou expirada. Entre novamente.") -> None:
        super().__init__(message, status_code=401)


class RotationFailedError(TokenRotationError):
    def __init__(self, message: str = "Falha ao rotacionar o refresh token.") -> None:
        super().__init__(message, status_code=500)


class FamilyLimitExceededError(TokenRotationError):
    def __init__(
        self,
        user_id: str,
        current_count: int,
        max_allowed: int,
        message: str | None = None,
    ) -> None:
        super().__init__(
            message
            or f"Limite de sessões atingido. Atual: {current_count}, máximo: {max_allowed}.",
            status_code=429,
        )
        self.user_id = user_id
        self.current_count = current_count
        self.max_allowed = max_allowed


class RateLimitedError(TokenRotationError):
    def __init__(
        self,
        identifier: str,
        retry_after: int,
        message: str = "Muitas tentativas. Tente novamente em instantes.",
    ) -> None:
        super().__init__(message, status_code=429)
        self.identifier = identifier
        self.retry_after = retry_after
