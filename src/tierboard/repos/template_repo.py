import builtins
import sqlite3

from tierboard.domain.grid import Card, Column, Tier
from tierboard.domain.template import Template


class SqliteTemplateRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert(self, template: Template) -> str:
        """Insert or fully replace a template together with its tiers, columns and cards."""
        self._conn.execute(
            """INSERT INTO template (id, owner_id, title, description, is_public)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   owner_id=excluded.owner_id,
                   title=excluded.title,
                   description=excluded.description,
                   is_public=excluded.is_public,
                   updated_at=datetime('now')""",
            (template.id, template.owner_id, template.title, template.description, int(template.is_public)),
        )
        for table in ("template_tier", "template_column", "template_card"):
            self._conn.execute(f"DELETE FROM {table} WHERE template_id = ?", (template.id,))
        self._conn.executemany(
            "INSERT INTO template_tier (id, template_id, name, color, order_index) VALUES (?, ?, ?, ?, ?)",
            [(t.id, template.id, t.name, t.color, t.order_index) for t in template.tiers],
        )
        self._conn.executemany(
            "INSERT INTO template_column (id, template_id, name, color, order_index) VALUES (?, ?, ?, ?, ?)",
            [(c.id, template.id, c.name, c.color, c.order_index) for c in template.columns],
        )
        self._conn.executemany(
            """INSERT INTO template_card (id, template_id, title, image_url, description, order_index)
               VALUES (?, ?, ?, ?, ?, ?)""",
            [(c.id, template.id, c.title, c.image_url, c.description, c.order_index) for c in template.cards],
        )
        return template.id

    def get(self, template_id: str) -> Template | None:
        row = self._conn.execute("SELECT * FROM template WHERE id = ?", (template_id,)).fetchone()
        return self._row_to_template(row) if row else None

    def list(self, owner_id: str | None = None) -> builtins.list[Template]:
        if owner_id is not None:
            rows = self._conn.execute(
                "SELECT * FROM template WHERE owner_id = ? ORDER BY created_at, id", (owner_id,)
            ).fetchall()
        else:
            rows = self._conn.execute("SELECT * FROM template ORDER BY created_at, id").fetchall()
        return [self._row_to_template(row) for row in rows]

    def delete(self, template_id: str) -> bool:
        cursor = self._conn.execute("DELETE FROM template WHERE id = ?", (template_id,))
        return cursor.rowcount > 0

    def _row_to_template(self, row: sqlite3.Row) -> Template:
        template_id = row["id"]
        tiers = self._conn.execute(
            "SELECT * FROM template_tier WHERE template_id = ? ORDER BY order_index, rowid", (template_id,)
        ).fetchall()
        columns = self._conn.execute(
            "SELECT * FROM template_column WHERE template_id = ? ORDER BY order_index, rowid", (template_id,)
        ).fetchall()
        cards = self._conn.execute(
            "SELECT * FROM template_card WHERE template_id = ? ORDER BY order_index, rowid", (template_id,)
        ).fetchall()
        return Template(
            id=template_id,
            owner_id=row["owner_id"],
            title=row["title"],
            description=row["description"],
            is_public=bool(row["is_public"]),
            tiers=tuple(
                Tier(id=r["id"], name=r["name"], color=r["color"], order_index=r["order_index"]) for r in tiers
            ),
            columns=tuple(
                Column(id=r["id"], name=r["name"], color=r["color"], order_index=r["order_index"]) for r in columns
            ),
            cards=tuple(
                Card(
                    id=r["id"],
                    title=r["title"],
                    image_url=r["image_url"],
                    description=r["description"],
                    order_index=r["order_index"],
                )
                for r in cards
            ),
        )
