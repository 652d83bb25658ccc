import builtins
import json
import sqlite3
from collections.abc import Sequence

from tierboard.domain.display_settings import DisplaySettings
from tierboard.domain.placement import Placement
from tierboard.domain.ranking import Ranking, ShareSettings
from tierboard.persistence.wire import (
    display_settings_from_dict,
    display_settings_to_dict,
    snapshot_from_dict,
    snapshot_to_dict,
)


class SqliteRankingRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert(self, ranking: Ranking) -> str:
        self._conn.execute(
            """INSERT INTO ranking
                   (id, owner_id, template_id, title, snapshot_json, display_settings_json,
                    view_token, edit_token, view_enabled, edit_enabled)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   owner_id=excluded.owner_id,
                   template_id=excluded.template_id,
                   title=excluded.title,
                   snapshot_json=excluded.snapshot_json,
                   display_settings_json=excluded.display_settings_json,
                   view_token=excluded.view_token,
                   edit_token=excluded.edit_token,
                   view_enabled=excluded.view_enabled,
                   edit_enabled=excluded.edit_enabled,
                   updated_at=datetime('now')""",
            (
                ranking.id,
                ranking.owner_id,
                ranking.template_id,
                ranking.title,
                json.dumps(snapshot_to_dict(ranking.snapshot)) if ranking.snapshot is not None else None,
                self._encode_overlay(ranking.display_settings),
                ranking.share.view_token,
                ranking.share.edit_token,
                int(ranking.share.view_enabled),
                int(ranking.share.edit_enabled),
            ),
        )
        self.replace_placements(ranking.id, ranking.placements)
        self._conn.execute("DELETE FROM ranking_co_owner WHERE ranking_id = ?", (ranking.id,))
        self._conn.executemany(
            "INSERT INTO ranking_co_owner (ranking_id, user_id) VALUES (?, ?)",
            [(ranking.id, user_id) for user_id in ranking.co_owner_ids],
        )
        return ranking.id

    def get(self, ranking_id: str) -> Ranking | None:
        row = self._conn.execute("SELECT * FROM ranking WHERE id = ?", (ranking_id,)).fetchone()
        return self._row_to_ranking(row) if row else None

    def get_by_edit_token(self, token: str) -> Ranking | None:
        row = self._conn.execute("SELECT * FROM ranking WHERE edit_token = ?", (token,)).fetchone()
        return self._row_to_ranking(row) if row else None

    def get_by_view_token(self, token: str) -> Ranking | None:
        row = self._conn.execute("SELECT * FROM ranking WHERE view_token = ?", (token,)).fetchone()
        return self._row_to_ranking(row) if row else None

    def list(self, owner_id: str | None = None) -> builtins.list[Ranking]:
        if owner_id is not None:
            rows = self._conn.execute(
                """SELECT * FROM ranking
                   WHERE owner_id = ? OR id IN (SELECT ranking_id FROM ranking_co_owner WHERE user_id = ?)
                   ORDER BY updated_at DESC, id""",
                (owner_id, owner_id),
            ).fetchall()
        else:
            rows = self._conn.execute("SELECT * FROM ranking ORDER BY updated_at DESC, id").fetchall()
        return [self._row_to_ranking(row) for row in rows]

    def delete(self, ranking_id: str) -> bool:
        cursor = self._conn.execute("DELETE FROM ranking WHERE id = ?", (ranking_id,))
        return cursor.rowcount > 0

    def exists(self, ranking_id: str) -> bool:
        return self._conn.execute("SELECT 1 FROM ranking WHERE id = ?", (ranking_id,)).fetchone() is not None

    def get_placements(self, ranking_id: str) -> builtins.list[Placement]:
        rows = self._conn.execute(
            "SELECT * FROM ranking_placement WHERE ranking_id = ? ORDER BY position", (ranking_id,)
        ).fetchall()
        return [
            Placement(
                card_id=row["card_id"],
                tier_id=row["tier_id"],
                column_id=row["column_id"],
                order_index=row["order_index"],
            )
            for row in rows
        ]

    def replace_placements(self, ranking_id: str, placements: Sequence[Placement]) -> None:
        """Delete every placement of the ranking, then insert the given list in order."""
        self._conn.execute("DELETE FROM ranking_placement WHERE ranking_id = ?", (ranking_id,))
        self._conn.executemany(
            """INSERT INTO ranking_placement (ranking_id, card_id, tier_id, column_id, order_index, position)
               VALUES (?, ?, ?, ?, ?, ?)
               ON CONFLICT(ranking_id, card_id) DO UPDATE SET
                   tier_id=excluded.tier_id,
                   column_id=excluded.column_id,
                   order_index=excluded.order_index""",
            [
                (ranking_id, p.card_id, p.tier_id, p.column_id if p.tier_id is not None else None, p.order_index, pos)
                for pos, p in enumerate(placements)
            ],
        )
        self._touch(ranking_id)

    def set_display_settings(self, ranking_id: str, overlay: DisplaySettings | None) -> None:
        self._conn.execute(
            "UPDATE ranking SET display_settings_json = ?, updated_at = datetime('now') WHERE id = ?",
            (self._encode_overlay(overlay), ranking_id),
        )

    def set_share(self, ranking_id: str, share: ShareSettings) -> None:
        self._conn.execute(
            """UPDATE ranking
               SET view_token = ?, edit_token = ?, view_enabled = ?, edit_enabled = ?, updated_at = datetime('now')
               WHERE id = ?""",
            (share.view_token, share.edit_token, int(share.view_enabled), int(share.edit_enabled), ranking_id),
        )

    def add_co_owner(self, ranking_id: str, user_id: str) -> None:
        self._conn.execute(
            "INSERT OR IGNORE INTO ranking_co_owner (ranking_id, user_id) VALUES (?, ?)", (ranking_id, user_id)
        )

    def remove_co_owner(self, ranking_id: str, user_id: str) -> bool:
        cursor = self._conn.execute(
            "DELETE FROM ranking_co_owner WHERE ranking_id = ? AND user_id = ?", (ranking_id, user_id)
        )
        return cursor.rowcount > 0

    def clear_co_owners(self, ranking_id: str) -> None:
        self._conn.execute("DELETE FROM ranking_co_owner WHERE ranking_id = ?", (ranking_id,))

    def _touch(self, ranking_id: str) -> None:
        self._conn.execute("UPDATE ranking SET updated_at = datetime('now') WHERE id = ?", (ranking_id,))

    @staticmethod
    def _encode_overlay(overlay: DisplaySettings | None) -> str | None:
        return json.dumps(display_settings_to_dict(overlay)) if overlay is not None else None

    def _row_to_ranking(self, row: sqlite3.Row) -> Ranking:
        co_owners = self._conn.execute(
            "SELECT user_id FROM ranking_co_owner WHERE ranking_id = ? ORDER BY created_at, user_id", (row["id"],)
        ).fetchall()
        return Ranking(
            id=row["id"],
            owner_id=row["owner_id"],
            title=row["title"],
            template_id=row["template_id"],
            share=ShareSettings(
                view_token=row["view_token"],
                edit_token=row["edit_token"],
                view_enabled=bool(row["view_enabled"]),
                edit_enabled=bool(row["edit_enabled"]),
            ),
            snapshot=snapshot_from_dict(json.loads(row["snapshot_json"])) if row["snapshot_json"] else None,
            display_settings=(
                display_settings_from_dict(json.loads(row["display_settings_json"]))
                if row["display_settings_json"]
                else None
            ),
            placements=tuple(self.get_placements(row["id"])),
            co_owner_ids=tuple(r["user_id"] for r in co_owners),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
