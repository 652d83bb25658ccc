import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

import typer

from tierboard.cli._logging import configure_logging
from tierboard.cli._output import (
    console,
    print_board,
    print_drop_outcome,
    print_error,
    print_ranking_summary,
    print_save_status,
    print_share,
    print_template,
    print_template_list,
)
from tierboard.cli.factory import build_board_session, build_store_context
from tierboard.config import BoardSettings, ConfigError, create_config, load_board_settings
from tierboard.db.connection import create_connection, get_schema_version
from tierboard.domain.drag import CardHandle, CellHandle, DropHandle, UnrankedHandle
from tierboard.exceptions import TierboardException
from tierboard.grid.autosave import SaveStatus
from tierboard.grid.quick_edit import DEFAULT_TIER_COLOR
from tierboard.grid.session import BoardSession
from tierboard.persistence.server import create_persistence_app
from tierboard.services.ranking_service import generate_id
from tierboard.services.template_import import template_from_dict

app = typer.Typer(name="tierboard", help="Tierboard: tierlist rankings with quick-edit overlays")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable DEBUG logging")] = False,
) -> None:
    """Tierboard: tierlist rankings with quick-edit overlays."""
    configure_logging(verbose=verbose)
    if ctx.invoked_subcommand is None:
        raise typer.Exit()


_DbOpt = Annotated[str | None, typer.Option("--db", help="SQLite database path (overrides db.path)")]
_ConfigOpt = Annotated[str, typer.Option("--config", help="YAML config file")]
_OwnerOpt = Annotated[str, typer.Option("--owner", help="Owning user id")]
_RankingArg = Annotated[str, typer.Argument(help="Ranking id")]


def _settings(config_path: str, db: str | None) -> BoardSettings:
    overrides: dict[str, object] = {"db": {"path": db}} if db is not None else {}
    try:
        return load_board_settings(create_config(yaml_path=config_path, overrides=overrides))
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


@app.command("init")
def init(db: _DbOpt = None, config: _ConfigOpt = "tierboard.yaml") -> None:
    """Create the database and apply migrations."""
    settings = _settings(config, db)
    conn = create_connection(settings.db_path)
    try:
        version = get_schema_version(conn)
    finally:
        conn.close()
    console.print(f"[bold green]Initialized[/bold green] {settings.db_path} (schema v{version})")


@app.command("serve")
def serve(
    host: Annotated[str | None, typer.Option("--host", help="Bind address")] = None,
    port: Annotated[int | None, typer.Option("--port", help="Listen port")] = None,
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """Serve the persistence API over HTTP."""
    settings = _settings(config, db)
    with build_store_context(settings, check_same_thread=False) as ctx:
        flask_app = create_persistence_app(ctx.persistence, max_placements=settings.max_placements)
        bind_host = host or settings.server_host
        bind_port = port or settings.server_port
        console.print(f"Serving tierboard API on http://{bind_host}:{bind_port}")
        # one connection is shared, so requests must not run concurrently
        flask_app.run(host=bind_host, port=bind_port, threaded=False)


# --- template subcommand group ---

template_app = typer.Typer(name="template", help="Manage grid templates")
app.add_typer(template_app, name="template")


@template_app.command("import")
def template_import(
    path: Annotated[Path, typer.Argument(help="Template JSON file")],
    owner: _OwnerOpt = "local",
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """Import a template from a JSON document."""
    if not path.exists():
        print_error(f"file not found: {path}")
        raise typer.Exit(code=1)
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        print_error(f"invalid JSON in {path}: {e}")
        raise typer.Exit(code=1) from e

    settings = _settings(config, db)
    with build_store_context(settings) as ctx:
        try:
            template = template_from_dict(data, owner, id_factory=generate_id)
        except TierboardException as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        ctx.template_repo.upsert(template)
        ctx.conn.commit()
    console.print(f"[bold green]Imported[/bold green] template [bold]'{template.title}'[/bold] ({template.id})")


@template_app.command("list")
def template_list(
    owner: Annotated[str | None, typer.Option("--owner", help="Filter by owner")] = None,
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """List templates."""
    with build_store_context(_settings(config, db)) as ctx:
        templates = ctx.template_repo.list(owner)
    print_template_list(templates)


@template_app.command("show")
def template_show(
    template_id: Annotated[str, typer.Argument(help="Template id")],
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """Show a template."""
    with build_store_context(_settings(config, db)) as ctx:
        template = ctx.template_repo.get(template_id)
    if template is None:
        print_error(f"template '{template_id}' not found")
        raise typer.Exit(code=1)
    print_template(template)


# --- ranking subcommand group ---

ranking_app = typer.Typer(name="ranking", help="Create, share and fill rankings")
app.add_typer(ranking_app, name="ranking")


@ranking_app.command("create")
def ranking_create(
    template_id: Annotated[str, typer.Argument(help="Template id")],
    owner: _OwnerOpt = "local",
    title: Annotated[str | None, typer.Option("--title", help="Ranking title")] = None,
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """Create a ranking from a template."""
    with build_store_context(_settings(config, db)) as ctx:
        try:
            ranking = ctx.ranking_service.create(template_id, owner, title)
        except TierboardException as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        ctx.conn.commit()
    print_ranking_summary(ranking)


@ranking_app.command("show")
def ranking_show(
    ranking_id: _RankingArg,
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """Render a ranking's effective grid."""
    settings = _settings(config, db)
    try:
        with build_board_session(ranking_id, settings, read_only=True) as session:
            print_board(session)
    except TierboardException as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


@ranking_app.command("copy")
def ranking_copy(
    ranking_id: _RankingArg,
    owner: _OwnerOpt = "local",
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """Copy a ranking, including its overlay and placements."""
    with build_store_context(_settings(config, db)) as ctx:
        try:
            ranking = ctx.ranking_service.copy(ranking_id, owner)
        except TierboardException as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        ctx.conn.commit()
    print_ranking_summary(ranking)


@ranking_app.command("share")
def ranking_share(
    ranking_id: _RankingArg,
    view: Annotated[bool | None, typer.Option("--view/--no-view", help="Enable view sharing")] = None,
    edit: Annotated[bool | None, typer.Option("--edit/--no-edit", help="Enable edit sharing")] = None,
    regenerate_view: Annotated[bool, typer.Option("--regenerate-view", help="Issue a new view token")] = False,
    regenerate_edit: Annotated[
        bool, typer.Option("--regenerate-edit", help="Issue a new edit token and revoke co-owners")
    ] = False,
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """Show or change share settings."""
    with build_store_context(_settings(config, db)) as ctx:
        try:
            ctx.ranking_service.regenerate_tokens(ranking_id, view=regenerate_view, edit=regenerate_edit)
            share = ctx.ranking_service.update_share(ranking_id, view_enabled=view, edit_enabled=edit)
        except TierboardException as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        ctx.conn.commit()
    print_share(share)


@ranking_app.command("join")
def ranking_join(
    token: Annotated[str, typer.Argument(help="Edit share token")],
    user: Annotated[str, typer.Option("--user", help="Joining user id")] = "local",
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """Become a co-owner through an edit share token."""
    with build_store_context(_settings(config, db)) as ctx:
        try:
            ranking = ctx.ranking_service.join(token, user)
        except TierboardException as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        ctx.conn.commit()
    print_ranking_summary(ranking)


@ranking_app.command("leave")
def ranking_leave(
    ranking_id: _RankingArg,
    user: Annotated[str, typer.Option("--user", help="Leaving user id")] = "local",
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """Stop co-owning a ranking."""
    with build_store_context(_settings(config, db)) as ctx:
        try:
            ctx.ranking_service.leave(ranking_id, user)
        except TierboardException as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        ctx.conn.commit()
    console.print(f"Left ranking {ranking_id}")


def _drop_handle(tier: str | None, column: str | None, onto: str | None) -> DropHandle:
    if onto is not None:
        return CardHandle(onto)
    if tier is None and column is None:
        return UnrankedHandle()
    if tier is None or column is None:
        print_error("--tier and --column must be given together")
        raise typer.Exit(code=1)
    return CellHandle(tier, column)


@ranking_app.command("move")
def ranking_move(
    ranking_id: _RankingArg,
    card_id: Annotated[str, typer.Argument(help="Card to move")],
    tier: Annotated[str | None, typer.Option("--tier", help="Target tier id")] = None,
    column: Annotated[str | None, typer.Option("--column", help="Target column id")] = None,
    onto: Annotated[str | None, typer.Option("--onto", help="Drop onto this card (takes its position)")] = None,
    cells_blocked: Annotated[bool, typer.Option("--cells-blocked", help="Reject drops into ranked cells")] = False,
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """Drag a card to a cell, onto another card, or back to the unranked pool."""
    handle = _drop_handle(tier, column, onto)
    settings = _settings(config, db)
    try:
        with build_board_session(ranking_id, settings, cells_blocked=cells_blocked) as session:
            outcome = session.move_card(card_id, handle)
    except TierboardException as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_drop_outcome(outcome)
    _finish(session)


def _finish(session: BoardSession) -> None:
    if session.status is SaveStatus.ERROR:
        print_error(f"failed to save ranking {session.ranking_id}")
        raise typer.Exit(code=1)
    print_save_status(session.status)


# --- quick-edit subcommand group ---

quick_edit_app = typer.Typer(name="quick-edit", help="Edit a ranking's overlay without touching its template")
app.add_typer(quick_edit_app, name="quick-edit")

_TierArg = Annotated[str, typer.Argument(help="Tier id")]
_ColumnArg = Annotated[str, typer.Argument(help="Column id")]
_CardArg = Annotated[str, typer.Argument(help="Card id")]
_NameOpt = Annotated[str | None, typer.Option("--name", help="Display name")]
_ColorOpt = Annotated[str | None, typer.Option("--color", help="Color, e.g. #ff7f7f")]
_PositionArg = Annotated[int, typer.Argument(help="Current position (0-based)")]


@contextmanager
def _quick_edit(ranking_id: str, db: str | None, config: str) -> Iterator[BoardSession]:
    """Run one quick edit inside a board session; the session flushes on exit."""
    settings = _settings(config, db)
    try:
        with build_board_session(ranking_id, settings) as session:
            yield session
    except TierboardException as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    _finish(session)


@quick_edit_app.command("add-tier")
def qe_add_tier(
    ranking_id: _RankingArg,
    name: _NameOpt = None,
    color: _ColorOpt = None,
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """Add a tier to the ranking's overlay."""
    with _quick_edit(ranking_id, db, config) as session:
        tier_id = session.add_tier(name=name, color=color or DEFAULT_TIER_COLOR)
    console.print(f"[bold green]Added[/bold green] tier {tier_id}")


@quick_edit_app.command("delete-tier")
def qe_delete_tier(
    ranking_id: _RankingArg, tier_id: _TierArg, db: _DbOpt = None, config: _ConfigOpt = "tierboard.yaml"
) -> None:
    """Hide a tier; its cards return to the unranked pool."""
    with _quick_edit(ranking_id, db, config) as session:
        session.delete_tier(tier_id)
    console.print(f"[bold green]Deleted[/bold green] tier {tier_id}")


@quick_edit_app.command("rename-tier")
def qe_rename_tier(
    ranking_id: _RankingArg,
    tier_id: _TierArg,
    name: _NameOpt = None,
    color: _ColorOpt = None,
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """Rename or recolor a tier."""
    with _quick_edit(ranking_id, db, config) as session:
        session.edit_tier(tier_id, name=name, color=color)
    console.print(f"[bold green]Updated[/bold green] tier {tier_id}")


@quick_edit_app.command("move-tier")
def qe_move_tier(
    ranking_id: _RankingArg,
    position: _PositionArg,
    up: Annotated[bool, typer.Option("--up/--down", help="Direction")] = True,
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """Swap a tier with its neighbour."""
    with _quick_edit(ranking_id, db, config) as session:
        session.move_tier(position, "up" if up else "down")
    console.print("[bold green]Reordered[/bold green] tiers")


@quick_edit_app.command("add-column")
def qe_add_column(
    ranking_id: _RankingArg,
    name: Annotated[str, typer.Option("--name", help="Column name")] = "",
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """Add a column to the ranking's overlay."""
    with _quick_edit(ranking_id, db, config) as session:
        column_id = session.add_column(name=name)
    console.print(f"[bold green]Added[/bold green] column {column_id}")


@quick_edit_app.command("delete-column")
def qe_delete_column(
    ranking_id: _RankingArg, column_id: _ColumnArg, db: _DbOpt = None, config: _ConfigOpt = "tierboard.yaml"
) -> None:
    """Hide a column; its cards return to the unranked pool."""
    with _quick_edit(ranking_id, db, config) as session:
        session.delete_column(column_id)
    console.print(f"[bold green]Deleted[/bold green] column {column_id}")


@quick_edit_app.command("rename-column")
def qe_rename_column(
    ranking_id: _RankingArg,
    column_id: _ColumnArg,
    name: _NameOpt = None,
    color: _ColorOpt = None,
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """Rename or recolor a column. An empty --color clears the template color."""
    with _quick_edit(ranking_id, db, config) as session:
        session.edit_column(column_id, name=name, color=color)
    console.print(f"[bold green]Updated[/bold green] column {column_id}")


@quick_edit_app.command("move-column")
def qe_move_column(
    ranking_id: _RankingArg,
    position: _PositionArg,
    left: Annotated[bool, typer.Option("--left/--right", help="Direction")] = True,
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """Swap a column with its neighbour."""
    with _quick_edit(ranking_id, db, config) as session:
        session.move_column(position, "left" if left else "right")
    console.print("[bold green]Reordered[/bold green] columns")


@quick_edit_app.command("add-card")
def qe_add_card(
    ranking_id: _RankingArg,
    title: Annotated[str, typer.Argument(help="Card title")],
    image_url: Annotated[str | None, typer.Option("--image-url", help="Image URL")] = None,
    description: Annotated[str | None, typer.Option("--description", help="Description")] = None,
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """Add a card to the unranked pool."""
    with _quick_edit(ranking_id, db, config) as session:
        card_id = session.add_card(title, image_url=image_url, description=description)
    console.print(f"[bold green]Added[/bold green] card {card_id}")


@quick_edit_app.command("edit-card")
def qe_edit_card(
    ranking_id: _RankingArg,
    card_id: _CardArg,
    title: Annotated[str, typer.Option("--title", help="Card title")],
    image_url: Annotated[str | None, typer.Option("--image-url", help="Image URL ('' clears)")] = None,
    description: Annotated[str | None, typer.Option("--description", help="Description ('' clears)")] = None,
    db: _DbOpt = None,
    config: _ConfigOpt = "tierboard.yaml",
) -> None:
    """Edit a card's title, image or description."""
    with _quick_edit(ranking_id, db, config) as session:
        session.edit_card(card_id, title=title, image_url=image_url, description=description)
    console.print(f"[bold green]Updated[/bold green] card {card_id}")


@quick_edit_app.command("remove-card")
def qe_remove_card(
    ranking_id: _RankingArg, card_id: _CardArg, db: _DbOpt = None, config: _ConfigOpt = "tierboard.yaml"
) -> None:
    """Remove a card from the ranking."""
    with _quick_edit(ranking_id, db, config) as session:
        session.remove_card(card_id)
    console.print(f"[bold green]Removed[/bold green] card {card_id}")
