import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from tierboard.config import BoardSettings
from tierboard.db.connection import create_connection
from tierboard.grid.session import BoardSession
from tierboard.persistence.http_client import HttpPersistenceClient
from tierboard.persistence.local import RepoPersistenceService
from tierboard.repos.ranking_repo import SqliteRankingRepo
from tierboard.repos.template_repo import SqliteTemplateRepo
from tierboard.services.ranking_service import RankingService


@dataclass(frozen=True)
class StoreContext:
    conn: sqlite3.Connection
    template_repo: SqliteTemplateRepo
    ranking_repo: SqliteRankingRepo
    ranking_service: RankingService
    persistence: RepoPersistenceService


@contextmanager
def build_store_context(settings: BoardSettings, *, check_same_thread: bool = True) -> Iterator[StoreContext]:
    """Composition-root context manager: opens DB, wires repos + services, yields context, closes DB."""
    conn = create_connection(settings.db_path, check_same_thread=check_same_thread)
    try:
        template_repo = SqliteTemplateRepo(conn)
        ranking_repo = SqliteRankingRepo(conn)
        yield StoreContext(
            conn=conn,
            template_repo=template_repo,
            ranking_repo=ranking_repo,
            ranking_service=RankingService(ranking_repo, template_repo),
            persistence=RepoPersistenceService(
                conn, ranking_repo, template_repo, max_placements=settings.max_placements
            ),
        )
    finally:
        conn.close()


@contextmanager
def build_board_session(
    ranking_id: str,
    settings: BoardSettings,
    *,
    cells_blocked: bool = False,
    read_only: bool = False,
) -> Iterator[BoardSession]:
    """Open a board session against the remote server when one is configured, else the local DB.

    Pending autosave writes are flushed when the context exits.
    """
    if settings.persistence_url:
        client = HttpPersistenceClient(settings.persistence_url, timeout=settings.persistence_timeout)
        try:
            session = BoardSession.load(
                ranking_id,
                client,
                delay_ms=settings.autosave_delay_ms,
                cells_blocked=cells_blocked,
                read_only=read_only,
            )
            try:
                yield session
            finally:
                session.close()
        finally:
            client.close()
        return

    # the autosave timer may flush from its own thread
    with build_store_context(settings, check_same_thread=False) as ctx:
        session = BoardSession.load(
            ranking_id,
            ctx.persistence,
            delay_ms=settings.autosave_delay_ms,
            cells_blocked=cells_blocked,
            read_only=read_only,
        )
        try:
            yield session
        finally:
            session.close()
