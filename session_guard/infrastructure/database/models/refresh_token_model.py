# session_guard/infrastructure/database/models/refresh_token_model.py

from datetime import datetime

from sqlalchemy import CHAR, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from session_guard.infrastructure.database.base_model import BaseModel, BigIntPK


class RefreshTokenModel(BaseModel):
    __tablename__ = "tbRefreshTokens"
    __table_args__ = (
        Index("ix_tbRefreshTokens_user_id", "user_id"),
        Index("ix_tbRefreshTokens_family_id", "family_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    family_id: Mapped[str] = mapped_column(String(36), nullable=False)

    token_hash: Mapped[str] = mapped_column(CHAR(64), nullable=False, unique=True)
    jti: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    device_info: Mapped[str] = mapped_column(String(255), nullable=True)
    user_agent: Mapped[str] = mapped_column(String(255), nullable=True)
    ip_hash: Mapped[str] = mapped_column(CHAR(64), nullable=True)

    issued_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # ✅ revoked_at é write-once: só o update condicional (revoked_at IS NULL) escreve aqui
    revoked_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)
    reason: Mapped[str] = mapped_column(String(100), nullable=True)
    replaced_by: Mapped[str] = mapped_column(CHAR(64), nullable=True)

    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at
