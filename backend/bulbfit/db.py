"""
SQLite catalog layer for BulbFit.

Stores:
- bulb_fitment: one row per (vehicle, modification, lamp position, bulb type)

Uses aiosqlite for async SQLite access. The database file lives at
backend/data/bulbfit.db (overridable via DATABASE_PATH) and is auto-created
on first startup.

Every query here answers "given filters X, return distinct values of
column Y". Nothing is cached at this layer.
"""

import logging
from pathlib import Path

import aiosqlite

from bulbfit.config import settings

logger = logging.getLogger(__name__)

DB_PATH: Path = settings.database_path

# Lamp functions offered at the position stage (compared lowercase)
LAMP_POSITIONS = (
    "low beam",
    "high beam",
    "fog lamps",
    "fog light",
    "front fog light",
)

_db: aiosqlite.Connection | None = None


async def get_db() -> aiosqlite.Connection:
    """Get or create the database connection."""
    global _db
    if _db is None:
        DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        _db = await aiosqlite.connect(str(DB_PATH))
        _db.row_factory = aiosqlite.Row
        await _db.execute("PRAGMA journal_mode=WAL")
        await _init_tables(_db)
        logger.info(f"SQLite catalog initialized at {DB_PATH}")
    return _db


async def close_db():
    """Close the database connection."""
    global _db
    if _db:
        await _db.close()
        _db = None
        logger.info("SQLite catalog connection closed")


async def _init_tables(db: aiosqlite.Connection):
    """Create tables if they don't exist."""
    await db.executescript("""
        CREATE TABLE IF NOT EXISTS bulb_fitment (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            model_year INTEGER NOT NULL,
            brand TEXT NOT NULL,
            model_name TEXT NOT NULL,
            model_type_name TEXT,
            body_type TEXT,
            position_category TEXT,
            position TEXT,
            bulb_type TEXT,
            technology TEXT
        );

        CREATE INDEX IF NOT EXISTS idx_bulb_fitment_vehicle
            ON bulb_fitment(model_year, brand, model_name);
        CREATE INDEX IF NOT EXISTS idx_bulb_fitment_position
            ON bulb_fitment(position);
    """)
    await db.commit()


# ─── Option queries ──────────────────────────────────────────────────


async def get_years() -> list[int]:
    """Distinct model years, newest first."""
    db = await get_db()
    cursor = await db.execute("SELECT DISTINCT model_year FROM bulb_fitment ORDER BY model_year DESC")
    rows = await cursor.fetchall()
    return [row[0] for row in rows]


async def get_brands(year: int) -> list[str]:
    """Distinct brands sold in a model year."""
    db = await get_db()
    cursor = await db.execute(
        "SELECT DISTINCT brand FROM bulb_fitment WHERE model_year = ? ORDER BY brand ASC",
        (year,),
    )
    rows = await cursor.fetchall()
    return [row[0] for row in rows]


async def get_models(year: int, brand: str) -> list[str]:
    """Distinct model names for a year + brand."""
    db = await get_db()
    cursor = await db.execute(
        """SELECT DISTINCT model_name FROM bulb_fitment
           WHERE model_year = ? AND brand = ?
           ORDER BY model_name ASC""",
        (year, brand),
    )
    rows = await cursor.fetchall()
    return [row[0] for row in rows]


async def get_modifications(year: int, brand: str, model: str) -> list[dict]:
    """Distinct (model_type_name, body_type) pairs, nulls last."""
    db = await get_db()
    cursor = await db.execute(
        """SELECT DISTINCT model_type_name, body_type FROM bulb_fitment
           WHERE model_year = ? AND brand = ? AND model_name = ?
           ORDER BY model_type_name IS NULL, model_type_name,
                    body_type IS NULL, body_type""",
        (year, brand, model),
    )
    rows = await cursor.fetchall()
    return [dict(row) for row in rows]


async def get_positions(
    year: int,
    brand: str,
    model: str,
    model_type: str | None = None,
    body_type: str | None = None,
) -> list[dict]:
    """
    Distinct (position_category, position) rows for a modification.

    Restricted to headlamp and fog functions (LAMP_POSITIONS). Model type and
    body type use null-safe equality so a modification with missing fields
    still matches its rows.
    """
    db = await get_db()
    placeholders = ", ".join("?" for _ in LAMP_POSITIONS)
    cursor = await db.execute(
        f"""SELECT DISTINCT position_category, position FROM bulb_fitment
            WHERE model_year = ? AND brand = ? AND model_name = ?
              AND model_type_name IS ?
              AND body_type IS ?
              AND position IS NOT NULL
              AND LOWER(position) IN ({placeholders})
            ORDER BY position ASC""",
        (year, brand, model, model_type or None, body_type or None, *LAMP_POSITIONS),
    )
    rows = await cursor.fetchall()
    return [dict(row) for row in rows]


async def get_bulbs(
    year: int,
    brand: str,
    model: str,
    model_type: str | None,
    body_type: str | None,
    position_category: str | None,
    position: str,
) -> list[dict]:
    """Distinct (bulb_type, technology) rows for a fully specified selection."""
    db = await get_db()
    cursor = await db.execute(
        """SELECT DISTINCT bulb_type, technology FROM bulb_fitment
           WHERE model_year = ? AND brand = ? AND model_name = ?
             AND model_type_name IS ?
             AND body_type IS ?
             AND position_category IS ?
             AND position = ?
             AND bulb_type IS NOT NULL
           ORDER BY bulb_type ASC""",
        (year, brand, model, model_type or None, body_type or None, position_category or None, position),
    )
    rows = await cursor.fetchall()
    return [dict(row) for row in rows]


# ─── Import ──────────────────────────────────────────────────────────


async def insert_fitment_rows(rows: list[dict]) -> int:
    """Insert catalog rows. Returns count inserted."""
    db = await get_db()
    count = 0
    for r in rows:
        await db.execute(
            """INSERT INTO bulb_fitment
               (model_year, brand, model_name, model_type_name, body_type,
                position_category, position, bulb_type, technology)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                int(r["model_year"]),
                r["brand"],
                r["model_name"],
                r.get("model_type_name"),
                r.get("body_type"),
                r.get("position_category"),
                r.get("position"),
                r.get("bulb_type"),
                r.get("technology"),
            ),
        )
        count += 1
    await db.commit()
    return count
