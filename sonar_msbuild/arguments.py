"""sonar_msbuild.arguments

Command-line construction for ``SonarScanner.MSBuild begin``.

The scanner is strict about ordering: ``begin``, then ``/k: /n: /v:``, then
``/d:`` analysis properties, then free-form arguments. :func:`build_arguments`
is the only place that knows that order.

Everything in this module is pure (no filesystem, network, or subprocess).
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional

from .config import StepConfiguration
from .credentials import MASK, is_secret
from .environment import expand, resolve_in_place
from .errors import ConfigurationError
from .registry import ServiceConnection

__all__ = [
    "DOTNET_COMMAND",
    "PROPERTY_HOST_URL",
    "ArgumentList",
    "Token",
    "build_arguments",
    "build_property_map",
    "is_dotnet_core_tool",
    "tokenize",
]


DOTNET_COMMAND = "dotnet"
PROPERTY_HOST_URL = "sonar.host.url"

TokenPropertyStrategy = Callable[[ServiceConnection], str]


def is_dotnet_core_tool(tool_path: str) -> bool:
    """.NET Core flavours of the scanner ship as a ``.dll`` run through ``dotnet``."""
    return (tool_path or "").lower().endswith(".dll")


def tokenize(text: Optional[str]) -> List[str]:
    """Split *text* into arguments using shell-like quoting.

    Quotes group words and are removed. Backslashes are kept literally so
    Windows paths (``C:\\build\\out``) pass through unchanged.
    """
    if not text or not text.strip():
        return []
    lexer = shlex.shlex(text, posix=True)
    lexer.whitespace_split = True
    lexer.commenters = ""
    lexer.escape = ""
    try:
        return list(lexer)
    except ValueError as e:
        raise ConfigurationError(f"Cannot tokenize arguments {text!r}: {e}") from e


@dataclass(frozen=True)
class Token:
    value: str
    display: Optional[str] = None

    @property
    def masked(self) -> bool:
        return self.display is not None

    def shown(self) -> str:
        return self.value if self.display is None else self.display


class ArgumentList:
    """Ordered argv where each token may carry a masked display form."""

    def __init__(self, tokens: Optional[Iterable[Token]] = None) -> None:
        self._tokens: List[Token] = list(tokens or [])

    def add(self, value: str) -> "ArgumentList":
        self._tokens.append(Token(str(value)))
        return self

    def add_all(self, values: Iterable[str]) -> "ArgumentList":
        for v in values:
            self.add(v)
        return self

    def add_masked(self, value: str, display: str) -> "ArgumentList":
        self._tokens.append(Token(str(value), display))
        return self

    def add_key_value_pair(self, prefix: str, key: str, value: str, mask: bool = False) -> "ArgumentList":
        token = f"{prefix}{key}={value}"
        if mask:
            return self.add_masked(token, f"{prefix}{key}={MASK}")
        return self.add(token)

    def add_tokenized(self, text: Optional[str]) -> "ArgumentList":
        return self.add_all(tokenize(text))

    def to_list(self) -> List[str]:
        """The argv actually passed to the process."""
        return [t.value for t in self._tokens]

    def to_masked_list(self) -> List[str]:
        """The argv safe for logs (secrets replaced, same length)."""
        return [t.shown() for t in self._tokens]

    def to_command_line(self) -> str:
        return " ".join(_quote_for_display(t) for t in self.to_masked_list())

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def __repr__(self) -> str:
        return f"ArgumentList({self.to_masked_list()!r})"


def _quote_for_display(arg: str) -> str:
    if arg and not any(c.isspace() or c in "\"'" for c in arg):
        return arg
    return '"' + arg.replace('"', '\\"') + '"'


def build_property_map(service: ServiceConnection, token_property: TokenPropertyStrategy) -> Dict[str, str]:
    """Ordered ``/d:`` properties derived from the service connection."""
    if not (service.server_url or "").strip():
        raise ConfigurationError(
            f"SonarQube installation '{service.name}' has no server URL configured."
        )

    props: Dict[str, str] = {PROPERTY_HOST_URL: service.server_url}
    token = service.auth_token or ""
    if token.strip():
        props[token_property(service)] = token
    return props


def build_arguments(
    config: StepConfiguration,
    tool_path: str,
    service: ServiceConnection,
    env: Mapping[str, str],
    *,
    token_property: TokenPropertyStrategy,
    dotnet_core: Callable[[str], bool] = is_dotnet_core_tool,
) -> ArgumentList:
    """Assemble the full ``begin`` command line."""
    args = ArgumentList()

    if dotnet_core(tool_path):
        args.add(DOTNET_COMMAND)
    args.add(tool_path)

    args.add("begin")
    args.add("/k:" + expand(config.project_key, env))
    args.add("/n:" + expand(config.project_name, env))
    args.add("/v:" + expand(config.project_version, env))

    props = build_property_map(service, token_property)
    # values may reference other properties, e.g. ${sonar.host.url}
    resolve_in_place(props)

    for key, value in props.items():
        if not value:
            continue
        args.add_key_value_pair("/d:", key, expand(value, env), mask=is_secret(key))

    args.add_all(service.analysis_property_tokens())
    args.add_tokenized(service.additional_properties)
    args.add_tokenized(expand(config.additional_arguments, env))
    return args
