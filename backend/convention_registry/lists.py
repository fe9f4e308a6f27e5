"""Decoding of multi-valued convention fields.

``province``, ``partners``, ``attachments`` and ``delegated_project_owner``
are stored as JSON arrays. Older rows (and some clients) carry them as a
JSON-encoded string, a comma separated string or a single bare value, so
everything entering the system goes through :func:`decode_string_list`.
"""
from __future__ import annotations

import json
from typing import Any, List

LIST_FIELDS = ("delegated_project_owner", "province", "partners", "attachments")


def decode_string_list(value: Any) -> List[str]:
    """Return ``value`` as a list of strings, whatever legacy shape it has."""

    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None]
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        try:
            parsed = json.loads(text)
        except ValueError:
            if "," in text:
                return [part.strip() for part in text.split(",") if part.strip()]
            return [text]
        if isinstance(parsed, list):
            return [str(item) for item in parsed if item is not None]
        if parsed is None:
            return []
        if isinstance(parsed, str):
            return [parsed] if parsed.strip() else []
        return [text]
    return [str(value)]


def encode_string_list(values: List[str]) -> str:
    """Canonical text encoding, used where a column is still plain text."""

    return json.dumps(list(values), ensure_ascii=False)
