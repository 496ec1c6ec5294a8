from __future__ import annotations
from typing import Optional


def find_unique_tags(raw: Optional[str]) -> list[str]:
    """Split a comma separated tag string into unique, normalized tag names.

    Order of first appearance is kept: "B, a, b" -> ["b", "a"].
    """
    if not raw:
        return []
    seen: list[str] = []
    for part in raw.split(","):
        name = part.strip().lower()
        if name and name not in seen:
            seen.append(name)
    return seen
