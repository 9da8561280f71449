#!/usr/bin/env python3
"""
Import bulb fitment rows from CSV into the SQLite catalog.

Usage:
    python import_bulb_fitment.py --file data/bulb_fitment.csv
    CSV: model_year, brand, model_name, model_type_name, body_type, position_category, position, bulb_type, technology
"""

import argparse
import asyncio
import csv
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from bulbfit.db import close_db, insert_fitment_rows

OPTIONAL_COLUMNS = ("model_type_name", "body_type", "position_category", "position", "bulb_type", "technology")


def parse_row(row: dict) -> dict | None:
    """Clean one CSV row. Returns None for rows without year/brand/model."""
    year = (row.get("model_year") or "").strip()
    brand = (row.get("brand") or "").strip()
    model_name = (row.get("model_name") or "").strip()
    if not year.isdigit() or not brand or not model_name:
        return None
    out = {"model_year": int(year), "brand": brand, "model_name": model_name}
    for col in OPTIONAL_COLUMNS:
        out[col] = (row.get(col) or "").strip() or None
    return out


async def run(filepath: str) -> int:
    path = Path(filepath)
    if not path.exists():
        print(f"Error: file not found: {path}")
        return 0
    rows = []
    skipped = 0
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        for raw in reader:
            parsed = parse_row(raw)
            if parsed is None:
                skipped += 1
                continue
            rows.append(parsed)
    if skipped:
        print(f"  skipped {skipped} rows without year/brand/model")
    try:
        return await insert_fitment_rows(rows)
    finally:
        await close_db()


def main():
    parser = argparse.ArgumentParser(description="Import bulb fitment rows from CSV")
    parser.add_argument("--file", required=True, help="Path to CSV")
    args = parser.parse_args()
    n = asyncio.run(run(args.file))
    print(f"Imported {n} fitment rows.")


if __name__ == "__main__":
    main()
