import json
import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from tierboard.cli.app import app
from tierboard.db.connection import create_connection
from tierboard.repos.ranking_repo import SqliteRankingRepo
from tierboard.repos.template_repo import SqliteTemplateRepo
from tests.helpers import place, seed_ranking

runner = CliRunner()

_NO_CONFIG = "/nonexistent/tierboard.yaml"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("TIERBOARD__"):
            monkeypatch.delenv(key)


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    path = tmp_path / "board.db"
    conn = create_connection(path)
    seed_ranking(
        conn,
        placements=(place("c1", "s", "col1", 0), place("c2", "s", "col1", 1), place("c3", None, None, 0)),
    )
    conn.close()
    return str(path)


def _invoke(*args: str, db: str) -> object:
    return runner.invoke(app, [*args, "--db", db, "--config", _NO_CONFIG])


def _placements(db: str) -> list:
    conn = create_connection(db)
    try:
        return SqliteRankingRepo(conn).get_placements("r1")
    finally:
        conn.close()


class TestInit:
    def test_creates_database(self, tmp_path: Path) -> None:
        db = str(tmp_path / "fresh" / "board.db")
        result = _invoke("init", db=db)
        assert result.exit_code == 0, result.output
        assert "schema v1" in result.output
        assert Path(db).exists()


class TestTemplateCommands:
    def test_import_and_list(self, tmp_path: Path) -> None:
        db = str(tmp_path / "board.db")
        doc = tmp_path / "games.json"
        doc.write_text(
            json.dumps(
                {
                    "id": "games",
                    "title": "Games",
                    "tiers": [{"name": "S", "color": "#ff7f7f"}],
                    "cards": [{"title": "Chess"}, {"title": "Go"}],
                }
            )
        )
        result = _invoke("template", "import", str(doc), db=db)
        assert result.exit_code == 0, result.output
        assert "Imported" in result.output

        result = _invoke("template", "list", db=db)
        assert result.exit_code == 0
        assert "games" in result.output

        result = _invoke("template", "show", "games", db=db)
        assert result.exit_code == 0
        assert "Cards: 2" in result.output

    def test_import_missing_file(self, tmp_path: Path) -> None:
        result = _invoke("template", "import", str(tmp_path / "nope.json"), db=str(tmp_path / "board.db"))
        assert result.exit_code == 1

    def test_import_invalid_template(self, tmp_path: Path) -> None:
        doc = tmp_path / "bad.json"
        doc.write_text(json.dumps({"title": ""}))
        result = _invoke("template", "import", str(doc), db=str(tmp_path / "board.db"))
        assert result.exit_code == 1

    def test_show_unknown(self, db_path: str) -> None:
        assert _invoke("template", "show", "nope", db=db_path).exit_code == 1


class TestRankingCommands:
    def test_create(self, db_path: str) -> None:
        result = _invoke("ranking", "create", "t1", "--owner", "alice", db=db_path)
        assert result.exit_code == 0, result.output
        assert "Games - My Tierlist" in result.output

    def test_create_unknown_template(self, db_path: str) -> None:
        assert _invoke("ranking", "create", "nope", db=db_path).exit_code == 1

    def test_show_renders_board(self, db_path: str) -> None:
        result = _invoke("ranking", "show", "r1", db=db_path)
        assert result.exit_code == 0, result.output
        assert "Card c1" in result.output
        assert "Unranked" in result.output

    def test_show_unknown(self, db_path: str) -> None:
        assert _invoke("ranking", "show", "nope", db=db_path).exit_code == 1

    def test_copy(self, db_path: str) -> None:
        result = _invoke("ranking", "copy", "r1", db=db_path)
        assert result.exit_code == 0, result.output
        assert "(Copy)" in result.output

    def test_share_join_leave(self, db_path: str) -> None:
        result = _invoke("ranking", "share", "r1", "--edit", db=db_path)
        assert result.exit_code == 0, result.output
        assert _invoke("ranking", "join", "edit-r1", "--user", "bob", db=db_path).exit_code == 0
        assert _invoke("ranking", "leave", "r1", "--user", "bob", db=db_path).exit_code == 0
        assert _invoke("ranking", "leave", "r1", "--user", "bob", db=db_path).exit_code == 1

    def test_join_disabled(self, db_path: str) -> None:
        assert _invoke("ranking", "join", "edit-r1", "--user", "bob", db=db_path).exit_code == 1

    def test_move_to_cell(self, db_path: str) -> None:
        result = _invoke("ranking", "move", "r1", "c3", "--tier", "a", "--column", "col2", db=db_path)
        assert result.exit_code == 0, result.output
        assert "Moved" in result.output
        assert place("c3", "a", "col2", 0) in _placements(db_path)

    def test_move_onto_card(self, db_path: str) -> None:
        result = _invoke("ranking", "move", "r1", "c2", "--onto", "c1", db=db_path)
        assert result.exit_code == 0, result.output
        assert "Reordered" in result.output
        placements = _placements(db_path)
        assert place("c2", "s", "col1", 0) in placements
        assert place("c1", "s", "col1", 1) in placements

    def test_move_to_pool(self, db_path: str) -> None:
        result = _invoke("ranking", "move", "r1", "c1", db=db_path)
        assert result.exit_code == 0, result.output
        assert place("c1", None, None, 1) in _placements(db_path)

    def test_move_blocked(self, db_path: str) -> None:
        result = _invoke(
            "ranking", "move", "r1", "c3", "--tier", "s", "--column", "col1", "--cells-blocked", db=db_path
        )
        assert result.exit_code == 0
        assert "Blocked" in result.output

    def test_move_needs_tier_and_column(self, db_path: str) -> None:
        assert _invoke("ranking", "move", "r1", "c3", "--tier", "s", db=db_path).exit_code == 1


class TestQuickEditCommands:
    def test_add_tier_persists_overlay(self, db_path: str) -> None:
        result = _invoke("quick-edit", "add-tier", "r1", "--name", "God", db=db_path)
        assert result.exit_code == 0, result.output
        conn = create_connection(db_path)
        try:
            overlay = SqliteRankingRepo(conn).get("r1").display_settings
        finally:
            conn.close()
        assert overlay.additional_tiers[0].name == "God"

    def test_delete_tier_pools_cards(self, db_path: str) -> None:
        result = _invoke("quick-edit", "delete-tier", "r1", "s", db=db_path)
        assert result.exit_code == 0, result.output
        assert all(p.tier_id is None for p in _placements(db_path))

    def test_add_and_remove_card(self, db_path: str) -> None:
        result = _invoke("quick-edit", "add-card", "r1", "Extra", db=db_path)
        assert result.exit_code == 0, result.output
        assert len(_placements(db_path)) == 4
        result = _invoke("quick-edit", "remove-card", "r1", "c1", db=db_path)
        assert result.exit_code == 0, result.output
        assert "c1" not in {p.card_id for p in _placements(db_path)}

    def test_rename_and_move(self, db_path: str) -> None:
        assert _invoke("quick-edit", "rename-tier", "r1", "s", "--name", "Super", db=db_path).exit_code == 0
        assert _invoke("quick-edit", "move-tier", "r1", "1", "--up", db=db_path).exit_code == 0
        assert _invoke("quick-edit", "add-column", "r1", "--name", "Extra", db=db_path).exit_code == 0
        assert _invoke("quick-edit", "rename-column", "r1", "col1", "--name", "One", db=db_path).exit_code == 0
        assert _invoke("quick-edit", "move-column", "r1", "0", "--right", db=db_path).exit_code == 0
        assert _invoke("quick-edit", "delete-column", "r1", "col2", db=db_path).exit_code == 0
        assert _invoke("quick-edit", "edit-card", "r1", "c2", "--title", "Two", db=db_path).exit_code == 0
        result = _invoke("ranking", "show", "r1", db=db_path)
        assert "Super" in result.output
        assert "Two" in result.output

    def test_unknown_ranking(self, db_path: str) -> None:
        assert _invoke("quick-edit", "add-tier", "nope", db=db_path).exit_code == 1

    def test_template_untouched_by_quick_edits(self, db_path: str) -> None:
        _invoke("quick-edit", "delete-tier", "r1", "s", db=db_path)
        conn = create_connection(db_path)
        try:
            template = SqliteTemplateRepo(conn).get("t1")
        finally:
            conn.close()
        assert [t.id for t in template.tiers] == ["s", "a", "b"]
