from session_guard.infrastructure.database.models.refresh_token_model import RefreshTokenModel  # noqa: F401
