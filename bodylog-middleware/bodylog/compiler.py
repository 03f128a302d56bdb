"""Format compiler — turns ``:token[arg]`` templates into line renderers.

A template is literal text interleaved with placeholders. A placeholder is a
colon, a token name of at least two characters (letters, digits, underscore
or hyphen) and an optional ``[argument]``. Anything else, including ``:x``
with a one-character name, is literal text.

Compiling produces a :class:`Renderer`: the parsed segments plus a small loop
that evaluates them against a token registry at render time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from bodylog.tokens import TokenRegistry

PLACEHOLDER_RE = re.compile(r":([-\w]{2,})(?:\[([^\]]+)\])?", re.ASCII)

MISSING = "-"


class UnknownTokenError(KeyError):
    """A template referenced a token that is not in the registry."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"unknown token: {self.name!r}"


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class Placeholder:
    name: str
    argument: str | None = None


Segment = Union[Literal, Placeholder]


def parse(template: str) -> tuple[Segment, ...]:
    """Split a template into literal and placeholder segments, in order."""
    segments: list[Segment] = []
    position = 0
    for match in PLACEHOLDER_RE.finditer(template):
        if match.start() > position:
            segments.append(Literal(template[position:match.start()]))
        segments.append(Placeholder(match.group(1), match.group(2)))
        position = match.end()
    if position < len(template):
        segments.append(Literal(template[position:]))
    return tuple(segments)


@dataclass(frozen=True)
class Renderer:
    """Compiled form of a format. Call it with ``(tokens, request, response)``."""

    template: str
    segments: tuple[Segment, ...]

    @property
    def token_names(self) -> frozenset[str]:
        return frozenset(s.name for s in self.segments if isinstance(s, Placeholder))

    def __call__(self, tokens: TokenRegistry, request: Any, response: Any) -> str:
        parts = []
        for segment in self.segments:
            if isinstance(segment, Literal):
                parts.append(segment.text)
                continue
            accessor = tokens.lookup(segment.name)
            if accessor is None:
                raise UnknownTokenError(segment.name)
            value = accessor(request, response, segment.argument)
            parts.append(str(value) if value else MISSING)
        return "".join(parts)


def compile_format(template: str) -> Renderer:
    """Compile a format string into a renderer.

    Raises:
        TypeError: If ``template`` is not a string.
    """
    if not isinstance(template, str):
        raise TypeError("argument format must be a string")
    return Renderer(template=template, segments=parse(template))
