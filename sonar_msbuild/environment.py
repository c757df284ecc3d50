"""sonar_msbuild.environment

Build environment + macro expansion.

Macro syntax
------------
``$NAME`` and ``${NAME}`` are replaced by the value of ``NAME`` in the supplied
mapping. Braced names may contain dots so property keys such as
``${sonar.host.url}`` can be referenced. ``$$`` is an escaped ``$``.

Unknown references are left untouched; expansion never fails on missing
variables.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Dict, Mapping, MutableMapping, Optional

__all__ = [
    "expand",
    "resolve_in_place",
    "build_environment",
    "module_root",
]


_MACRO = re.compile(r"\$(?:([A-Za-z0-9_]+)|\{([A-Za-z0-9_.]+)\}|(\$))")


def expand(template: Optional[str], env: Mapping[str, str]) -> str:
    """Expand ``$VAR`` / ``${VAR}`` references in *template* using *env*."""
    if not template:
        return ""

    def _replace(m: re.Match[str]) -> str:
        if m.group(3):
            return "$"
        name = m.group(1) or m.group(2)
        value = env.get(name)
        if value is None:
            return m.group(0)
        return str(value)

    return _MACRO.sub(_replace, template)


def resolve_in_place(values: MutableMapping[str, str]) -> None:
    """Expand each value of *values* against the mapping itself, once.

    Entries are rewritten in insertion order, so a later entry sees the
    already-expanded value of an earlier one. Nested references that are still
    unresolved after this single pass stay literal.
    """
    for key in list(values.keys()):
        values[key] = expand(values[key], values)


def build_environment(
    base: Optional[Mapping[str, str]] = None,
    build_variables: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Return the environment for one step execution.

    Starts from *base* (default: a copy of ``os.environ``) and overlays the
    build variables (build parameters win over inherited variables).
    """
    env: Dict[str, str] = dict(os.environ if base is None else base)
    for key, value in (build_variables or {}).items():
        env[str(key)] = "" if value is None else str(value)
    return env


def module_root(workspace: Path, override: Optional[str] = None) -> Path:
    """Working directory for the scanner process.

    Defaults to the workspace root. A relative override is anchored under the
    workspace; an absolute one is used as-is.
    """
    if not override:
        return workspace
    p = Path(override)
    if not p.is_absolute():
        p = workspace / p
    return p
