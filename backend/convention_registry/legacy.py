"""Rewriting legacy multi-valued columns into canonical JSON arrays."""
from __future__ import annotations

import json
import logging
from typing import Any, List

import sqlalchemy as sa
from sqlalchemy.engine import Connection

from .lists import LIST_FIELDS, decode_string_list, encode_string_list

logger = logging.getLogger(__name__)


def _conventions_table(value_type: sa.types.TypeEngine) -> sa.TableClause:
    return sa.table(
        "conventions",
        sa.column("id", sa.Integer()),
        *(sa.column(field, value_type) for field in LIST_FIELDS),
    )


def _is_canonical(raw: Any, values: List[str]) -> bool:
    if isinstance(raw, list):
        return raw == values
    if not isinstance(raw, str):
        return False
    try:
        return json.loads(raw) == values
    except ValueError:
        return False


def normalize_legacy_rows(connection: Connection, stored_as_json: bool = False) -> int:
    """Decode every list column of every convention and store it canonically.

    Values are always read as raw text so a legacy ``"A, B"`` never goes
    through a JSON decoder. ``stored_as_json`` selects how the canonical
    value is written back: as a JSON array for JSON columns, or as its text
    encoding while the columns are still plain text. Returns the number of
    rows rewritten; running it twice rewrites nothing the second time.
    """

    reader = _conventions_table(sa.Text())
    writer = _conventions_table(sa.JSON() if stored_as_json else sa.Text())

    changed = 0
    for row in connection.execute(sa.select(reader)).mappings().all():
        updates = {}
        for field in LIST_FIELDS:
            raw = row[field]
            values = decode_string_list(raw)
            if not _is_canonical(raw, values):
                updates[field] = values if stored_as_json else encode_string_list(values)
        if updates:
            connection.execute(
                sa.update(writer).where(writer.c.id == row["id"]).values(**updates)
            )
            changed += 1

    logger.info("Normalized list columns of %d conventions", changed)
    return changed
