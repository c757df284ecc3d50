from __future__ import annotations

"""cli.common

Small shared helpers for CLI command modules.
"""

from typing import Dict, Iterable, Optional


def parse_defines(raw: Optional[Iterable[str]]) -> Dict[str, str]:
    """Parse repeated ``-D KEY=VALUE`` flags into a dict (last one wins).

    ``KEY`` alone means an empty value.
    """
    out: Dict[str, str] = {}
    for item in raw or []:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not key:
            raise ValueError(f"Invalid build variable (expected KEY=VALUE): {item!r}")
        out[key] = value if sep else ""
    return out
