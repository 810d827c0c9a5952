# session_guard/cli/maintenance_commands.py
import logging

import click
from flask import Flask

from session_guard.infrastructure.database.base_model import BaseModel
from session_guard.infrastructure.database.session import db_session, get_engine
from session_guard.services.refresh_token_service import build_refresh_token_service

logger = logging.getLogger(__name__)


def register_cli(app: Flask) -> None:
    @app.cli.command("sweep-expired")
    def sweep_expired():
        """Marca como EXPIRED os refresh tokens ativos que já passaram do prazo."""
        with db_session() as session:
            refresh_svc = build_refresh_token_service(session)
            swept = refresh_svc.sweep_expired()
            cleaned = refresh_svc.cleanup_rate_limits()
        click.echo(f"{swept} token(s) expirados revogados; {cleaned} janela(s) de rate limit removidas.")

    @app.cli.command("create-schema")
    def create_schema():
        """Cria a tabela de refresh tokens (ambientes sem migração)."""
        import session_guard.infrastructure.database.models  # noqa: F401

        BaseModel.metadata.create_all(get_engine())
        click.echo("Schema criado.")
