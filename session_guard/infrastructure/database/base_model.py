# session_guard/infrastructure/database/base_model.py

from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import DeclarativeBase

# BIGINT não vira alias de ROWID no SQLite; sem a variante a PK não autoincrementa
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")


class BaseModel(DeclarativeBase):
    pass
