from __future__ import annotations

from typing import Any

"""Location lookup: one location per report sheet, keyed by sheet name."""

__all__ = [
    "find_or_create_location",
]


def find_or_create_location(cursor: Any, name: str, address: str | None = None) -> tuple[Any, bool]:
    """Return (location id, created) for the location called `name`.

    New locations get the name as their address unless one is given.
    """
    cursor.execute("SELECT id FROM locations WHERE name = %s ORDER BY id LIMIT 1", (name,))
    found = cursor.fetchone()
    if found is not None:
        return found[0], False
    cursor.execute(
        "INSERT INTO locations (name, address) VALUES (%s, %s) RETURNING id",
        (name, address or name),
    )
    return cursor.fetchone()[0], True
