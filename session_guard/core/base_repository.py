# session_guard/core/base_repository.py
from typing import Generic, TypeVar

from sqlalchemy.orm import Session
from sqlalchemy.sql import Executable

TModel = TypeVar("TModel")


class BaseRepository(Generic[TModel]):
    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, model: TModel) -> TModel:
        self._session.add(model)
        self._session.flush()
        return model

    def _rowcount(self, stmt: Executable) -> int:
        # UPDATE em massa: quantas linhas a condição realmente afetou
        result = self._session.execute(stmt)
        return int(result.rowcount or 0)
