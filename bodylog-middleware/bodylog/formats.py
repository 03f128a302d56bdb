"""Named formats and the compiled-renderer cache.

A format is either a template string, compiled on first use, or a line
function with the renderer signature ``(tokens, request, response)``. A line
function may return None to suppress the line.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional, Union

from bodylog.compiler import Renderer, compile_format
from bodylog.tokens import TokenRegistry

LineFunction = Callable[[TokenRegistry, Any, Any], Optional[str]]
FormatDefinition = Union[str, LineFunction]

DEFAULT_FORMAT = "default"

RESET = "\x1b[0m"

COMBINED_FORMAT = (
    ':remote-addr - [:date[clf]] ":method :url HTTP/:http-version" '
    ':status :res[content-length] ":referrer" ":user-agent"'
)

TINY_FORMAT = ":method :url :status :res[content-length] - :response-time ms"


def status_color(status: int | None) -> int:
    """ANSI color code for a status class."""
    if status is None:
        return 0
    if status >= 500:
        return 31  # red
    if status >= 400:
        return 33  # yellow
    if status >= 300:
        return 36  # cyan
    if status >= 200:
        return 32  # green
    return 0


class DevResponseFormat:
    """Colored response line; one compiled renderer per status color."""

    def __init__(self):
        self._renderers: dict[int, Renderer] = {}

    def __call__(self, tokens: TokenRegistry, req: Any, res: Any) -> str:
        status = res.status_code if res.headers_sent else None
        color = status_color(status)

        renderer = self._renderers.get(color)
        if renderer is None:
            renderer = self._renderers[color] = compile_format(
                f"\x1b[96mResponse: \x1b[{color}m:status {RESET}"
                f":response-time ms - :res[content-length]{RESET}"
            )
        return renderer(tokens, req, res)


def dev_request_template(
    log_date_time: bool = True,
    log_user_agent: bool = True,
    date_format: str = "",
) -> str:
    """Colored request line template.

    ``date_format`` is the ``:date`` argument ("clf", "iso", "local,<zone>"
    or "" for the RFC 1123 default).
    """
    template = "\x1b[96mRequest: \x1b[93m:method \x1b[97m:url"
    if log_date_time:
        template += " \x1b[90mat \x1b[37m:date"
        if date_format:
            template += f"[{date_format}]"
    if log_date_time and log_user_agent:
        template += ","
    if log_user_agent:
        template += f" \x1b[90mUser Agent: :user-agent{RESET}"
    else:
        template += RESET
    return template


class FormatRegistry:
    """Named formats owned by a logger.

    Registering a name replaces the previous definition and drops its cached
    renderer. Unknown names are treated as raw templates.
    """

    def __init__(self, with_builtins: bool = True):
        self._formats: dict[str, Any] = {}
        self._compiled: dict[str, Renderer] = {}
        self._lock = threading.Lock()
        if with_builtins:
            self.register("default", COMBINED_FORMAT)
            self.register("combined", COMBINED_FORMAT)
            self.register("tiny", TINY_FORMAT)
            self.register("dev-res", DevResponseFormat())

    def register(self, name: str, fmt: FormatDefinition) -> FormatRegistry:
        if not isinstance(fmt, str) and not callable(fmt):
            raise TypeError(f"format {name!r} must be a template string or a callable")
        with self._lock:
            self._formats[name] = fmt
            self._compiled.pop(name, None)
        return self

    def get(self, name: str) -> FormatDefinition | None:
        return self._formats.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._formats

    def line_function(self, fmt: FormatDefinition | None) -> LineFunction:
        """Resolve a name, raw template or callable to a line function.

        An empty name selects the default format.
        """
        if callable(fmt):
            return fmt
        name = fmt or DEFAULT_FORMAT
        definition = self._formats.get(name, name)
        if callable(definition):
            return definition
        if name not in self._formats:
            return compile_format(definition)

        renderer = self._compiled.get(name)
        if renderer is None:
            with self._lock:
                renderer = self._compiled.setdefault(name, compile_format(definition))
        return renderer
