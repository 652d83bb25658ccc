from rich.console import Console
from rich.table import Table

from tierboard.domain.display_settings import has_quick_edits
from tierboard.domain.grid import Origin
from tierboard.domain.placement import UNRANKED
from tierboard.domain.ranking import Ranking, ShareSettings
from tierboard.domain.template import Template
from tierboard.grid.autosave import SaveStatus
from tierboard.grid.drag import DropKind, DropOutcome
from tierboard.grid.session import BoardSession

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def print_error(message: str) -> None:
    err_console.print(f"[red bold]Error:[/red bold] {message}")


def print_template_list(templates: list[Template]) -> None:
    if not templates:
        console.print("No templates found.")
        return
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Owner")
    table.add_column("Tiers", justify="right")
    table.add_column("Columns", justify="right")
    table.add_column("Cards", justify="right")
    for t in templates:
        table.add_row(t.id, t.title, t.owner_id, str(len(t.tiers)), str(len(t.columns)), str(len(t.cards)))
    console.print(table)


def print_template(template: Template) -> None:
    console.print(f"[bold]{template.title}[/bold] ({template.id})")
    if template.description:
        console.print(f"  {template.description}")
    console.print(f"  Tiers: {', '.join(t.name for t in template.tiers) or '-'}")
    console.print(f"  Columns: {', '.join(c.name or c.id for c in template.columns) or '-'}")
    console.print(f"  Cards: {len(template.cards)}")


def print_ranking_summary(ranking: Ranking) -> None:
    console.print(f"[bold green]Ranking[/bold green] [bold]'{ranking.title}'[/bold] ({ranking.id})")
    console.print(f"  Owner: {ranking.owner_id}")
    if ranking.co_owner_ids:
        console.print(f"  Co-owners: {', '.join(ranking.co_owner_ids)}")
    console.print(f"  Placements: {len(ranking.placements)}")


def print_share(share: ShareSettings) -> None:
    view = "[green]on[/green]" if share.view_enabled else "[dim]off[/dim]"
    edit = "[green]on[/green]" if share.edit_enabled else "[dim]off[/dim]"
    console.print(f"  View sharing: {view}  token={share.view_token}")
    console.print(f"  Edit sharing: {edit}  token={share.edit_token}")


def _card_label(title: str, origin: Origin) -> str:
    return f"[italic]{title}[/italic]" if origin is Origin.SYNTHETIC else title


def print_board(session: BoardSession) -> None:
    """Render the effective grid: one row per tier, one column per grid column, then the pool."""
    grid = session.grid
    if has_quick_edits(session.overlay):
        console.print("[dim]Quick edits applied[/dim]")
    table = Table(show_lines=True)
    table.add_column("Tier")
    for column in grid.columns:
        table.add_column(column.name or "")
    for tier in grid.tiers:
        cells: list[str] = []
        for column in grid.columns:
            cards = session.cell_cards((tier.id, column.id))
            cells.append("\n".join(_card_label(c.title, c.origin) for c in cards))
        table.add_row(f"[bold]{tier.name}[/bold]", *cells)
    console.print(table)

    pool = session.cell_cards(UNRANKED)
    console.print(f"[bold]Unranked[/bold] ({len(pool)})")
    for card in pool:
        console.print(f"  {_card_label(card.title, card.origin)} [dim]{card.id}[/dim]")


_OUTCOME_TEXT = {
    DropKind.MOVED: "[bold green]Moved[/bold green]",
    DropKind.REORDERED: "[bold green]Reordered[/bold green]",
    DropKind.NO_OP: "[yellow]No change[/yellow]",
    DropKind.BLOCKED: "[red]Blocked[/red]",
    DropKind.NO_TARGET: "[red]No drop target[/red]",
    DropKind.CANCELLED: "[dim]Cancelled[/dim]",
}


def print_drop_outcome(outcome: DropOutcome) -> None:
    console.print(f"{_OUTCOME_TEXT[outcome.kind]} {outcome.card_id or ''}".rstrip())


def print_save_status(status: SaveStatus) -> None:
    if status is SaveStatus.SAVED:
        console.print("[dim]Saved.[/dim]")
