# session_guard/repositories/refresh_token_repository.py

from datetime import datetime

from sqlalchemy import func, select, update

from session_guard.core.base_repository import BaseRepository
from session_guard.infrastructure.database.models.refresh_token_model import RefreshTokenModel


class RefreshTokenRepository(BaseRepository[RefreshTokenModel]):
    def get_by_hash(self, token_hash: str) -> RefreshTokenModel | None:
        # sem filtro de revoked_at: a detecção de reuso precisa enxergar tokens revogados
        stmt = select(RefreshTokenModel).where(RefreshTokenModel.token_hash == token_hash)
        return self._session.execute(stmt).scalar_one_or_none()

    def list_by_family(self, family_id: str) -> list[RefreshTokenModel]:
        stmt = (
            select(RefreshTokenModel)
            .where(RefreshTokenModel.family_id == family_id)
            .order_by(RefreshTokenModel.issued_at.asc(), RefreshTokenModel.id.asc())
        )
        return list(self._session.execute(stmt).scalars().all())

    def get_family_owner(self, family_id: str) -> str | None:
        stmt = select(RefreshTokenModel.user_id).where(RefreshTokenModel.family_id == family_id).limit(1)
        return self._session.execute(stmt).scalars().first()

    def list_active_by_user(self, user_id: str, *, now: datetime) -> list[RefreshTokenModel]:
        stmt = (
            select(RefreshTokenModel)
            .where(
                RefreshTokenModel.user_id == user_id,
                RefreshTokenModel.revoked_at.is_(None),
                RefreshTokenModel.expires_at >= now,
            )
            .order_by(RefreshTokenModel.issued_at.desc(), RefreshTokenModel.id.desc())
        )
        return list(self._session.execute(stmt).scalars().all())

    def lock_user_families(self, user_id: str) -> None:
        """Serializa criação de famílias do usuário até o fim da transação (PostgreSQL).

        Nos demais bancos a escrita já é serializada pelo lock do próprio banco; quem chama
        reconta depois do insert.
        """
        if self._session.get_bind().dialect.name != "postgresql":
            return
        self._session.execute(select(func.pg_advisory_xact_lock(func.hashtext(user_id))))

    def count_active_families(self, user_id: str, *, now: datetime) -> int:
        stmt = select(func.count(func.distinct(RefreshTokenModel.family_id))).where(
            RefreshTokenModel.user_id == user_id,
            RefreshTokenModel.revoked_at.is_(None),
            RefreshTokenModel.expires_at >= now,
        )
        return int(self._session.execute(stmt).scalar() or 0)

    def family_started_at(self, family_ids: list[str]) -> dict[str, datetime]:
        if not family_ids:
            return {}
        stmt = (
            select(RefreshTokenModel.family_id, func.min(RefreshTokenModel.issued_at))
            .where(RefreshTokenModel.family_id.in_(family_ids))
            .group_by(RefreshTokenModel.family_id)
        )
        return {family_id: started for family_id, started in self._session.execute(stmt).all()}

    def revoke_if_active(
        self,
        *,
        token_hash: str,
        now: datetime,
        reason: str,
        replaced_by: str | None = None,
    ) -> bool:
        # update condicional: entre duas requisições concorrentes só uma afeta a linha
        stmt = (
            update(RefreshTokenModel)
            .where(
                RefreshTokenModel.token_hash == token_hash,
                RefreshTokenModel.revoked_at.is_(None),
            )
            .values(revoked_at=now, reason=reason, replaced_by=replaced_by)
        )
        return self._rowcount(stmt) == 1

    def revoke_active_by_family(self, family_id: str, *, now: datetime, reason: str) -> int:
        stmt = (
            update(RefreshTokenModel)
            .where(
                RefreshTokenModel.family_id == family_id,
                RefreshTokenModel.revoked_at.is_(None),
            )
            .values(revoked_at=now, reason=reason)
        )
        return self._rowcount(stmt)

    def revoke_active_by_user(self, user_id: str, *, now: datetime, reason: str) -> int:
        stmt = (
            update(RefreshTokenModel)
            .where(
                RefreshTokenModel.user_id == user_id,
                RefreshTokenModel.revoked_at.is_(None),
            )
            .values(revoked_at=now, reason=reason)
        )
        return self._rowcount(stmt)

    def revoke_expired(self, *, now: datetime, reason: str) -> int:
        stmt = (
            update(RefreshTokenModel)
            .where(
                RefreshTokenModel.expires_at < now,
                RefreshTokenModel.revoked_at.is_(None),
            )
            .values(revoked_at=now, reason=reason)
        )
        return self._rowcount(stmt)
