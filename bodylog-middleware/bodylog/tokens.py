"""Token registry and the built-in tokens.

A token is an accessor ``(request, response, argument) -> str | None``
that pulls one field of log data out of a request/response pair. Accessors
return None for anything that is absent; the renderer prints ``-`` for it.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from email.utils import format_datetime
from typing import Any, Callable, Iterable

from starlette.requests import Request

from bodylog.config import resolve_timezone
from bodylog.state import ResponseInfo, utcnow

logger = logging.getLogger(__name__)

TokenAccessor = Callable[[Request, ResponseInfo, "str | None"], Any]

CLF_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

DEFAULT_RESPONSE_TIME_DIGITS = 3


class TokenRegistry:
    """Mapping of token name to accessor, owned by a logger.

    Registration replaces the whole mapping under a lock, so lookups made
    while requests are being served never see a partially updated table.
    Registering an existing name overwrites it.
    """

    def __init__(self, accessors: dict[str, TokenAccessor] | None = None):
        self._accessors: dict[str, TokenAccessor] = dict(accessors or {})
        self._lock = threading.Lock()

    def register(self, name: str, accessor: TokenAccessor) -> TokenRegistry:
        if not callable(accessor):
            raise TypeError(f"accessor for token {name!r} must be callable")
        with self._lock:
            accessors = dict(self._accessors)
            accessors[name] = accessor
            self._accessors = accessors
        return self

    def token(self, name: str) -> Callable[[TokenAccessor], TokenAccessor]:
        """Decorator form of :meth:`register`."""

        def decorator(accessor: TokenAccessor) -> TokenAccessor:
            self.register(name, accessor)
            return accessor

        return decorator

    def lookup(self, name: str) -> TokenAccessor | None:
        return self._accessors.get(name)

    def names(self) -> Iterable[str]:
        return sorted(self._accessors)

    def copy(self) -> TokenRegistry:
        return TokenRegistry(self._accessors)

    def __contains__(self, name: object) -> bool:
        return name in self._accessors

    def __len__(self) -> int:
        return len(self._accessors)


# ─── Built-in tokens ──────────────────────────────────────────────────────────


def get_method(req: Request, res: ResponseInfo, arg: str | None = None) -> str:
    return req.method


def get_url(req: Request, res: ResponseInfo, arg: str | None = None) -> str:
    return getattr(req.state, "original_url", None) or request_target(req.scope)


def get_status(req: Request, res: ResponseInfo, arg: str | None = None) -> str | None:
    if not res.headers_sent or res.status_code is None:
        return None
    return str(res.status_code)


def get_response_time(
    req: Request, res: ResponseInfo, digits: str | None = None
) -> str | None:
    req_start = getattr(req.state, "start_at", None)
    if not req_start or not res.start_at:
        # missing request and/or response start time
        return None

    # calculate diff
    elapsed_ns = (res.start_at[0] - req_start[0]) * 1_000_000_000 + res.start_at[1] - req_start[1]
    return format_milliseconds(elapsed_ns, _parse_digits(digits))


def get_date(req: Request, res: ResponseInfo, fmt: str | None = None) -> str:
    date = utcnow()
    if fmt == "clf":
        return clf_date(date)
    if fmt == "iso":
        return iso_date(date)
    zone = local_timezone_suffix(fmt)
    if zone is not None:
        return local_date(date, zone)
    return format_datetime(date, usegmt=True)


def get_referrer(req: Request, res: ResponseInfo, arg: str | None = None) -> str | None:
    return req.headers.get("referer") or req.headers.get("referrer")


def get_remote_addr(req: Request, res: ResponseInfo | None = None, arg: str | None = None) -> str | None:
    client = req.scope.get("client")
    return (
        getattr(req.state, "ip", None)
        or getattr(req.state, "remote_address", None)
        or (client[0] if client else None)
    )


def get_http_version(req: Request, res: ResponseInfo, arg: str | None = None) -> str:
    version = req.scope.get("http_version", "1.1")
    major, _, minor = version.partition(".")
    return f"{major}.{minor or '0'}"


def get_user_agent(req: Request, res: ResponseInfo, arg: str | None = None) -> str | None:
    return req.headers.get("user-agent")


def get_request_header(req: Request, res: ResponseInfo, field: str | None = None) -> str | None:
    if not field:
        return None
    return _join(req.headers.getlist(field))


def get_response_header(req: Request, res: ResponseInfo, field: str | None = None) -> str | None:
    if not field or not res.headers_sent:
        return None
    header = res.get_header(field)
    if isinstance(header, list):
        return ", ".join(header)
    return header


BUILTIN_TOKENS: dict[str, TokenAccessor] = {
    "method": get_method,
    "url": get_url,
    "status": get_status,
    "response-time": get_response_time,
    "date": get_date,
    "referrer": get_referrer,
    "remote-addr": get_remote_addr,
    "http-version": get_http_version,
    "user-agent": get_user_agent,
    "req": get_request_header,
    "res": get_response_header,
}


def default_tokens() -> TokenRegistry:
    """A fresh registry holding the built-in tokens."""
    return TokenRegistry(BUILTIN_TOKENS)


# ─── Helpers ──────────────────────────────────────────────────────────────────


def request_target(scope: dict[str, Any]) -> str:
    """Path plus query string, as the client sent them.

    ``path`` is percent-decoded by the server, so the undecoded ``raw_path``
    is used when present. Some servers include the query in ``raw_path``.
    """
    raw_path = scope.get("raw_path")
    if raw_path:
        path = raw_path.partition(b"?")[0].decode("latin-1")
    else:
        path = scope.get("path", "")
    query = scope.get("query_string", b"")
    if query:
        return f"{path}?{query.decode('latin-1')}"
    return path


def clf_date(date: datetime) -> str:
    """Format a UTC datetime in the common log format."""
    return (
        f"{date.day:02d}/{CLF_MONTHS[date.month - 1]}/{date.year}"
        f":{date.hour:02d}:{date.minute:02d}:{date.second:02d} +0000"
    )


def iso_date(date: datetime) -> str:
    return date.strftime("%Y-%m-%dT%H:%M:%S.") + f"{date.microsecond // 1000:03d}Z"


def local_timezone_suffix(fmt: str | None) -> str | None:
    """Zone name from a ``local,<zone>`` format, or None for other formats."""
    if not fmt:
        return None
    prefix, _, suffix = fmt.partition(",")
    if prefix != "local":
        return None
    return suffix


def local_date(date: datetime, zone_name: str) -> str:
    """Render like ``Thu Oct 19 2017 12:35:19 GMT+0530 (IST)``.

    Unknown or empty zone names render in the host's local timezone.
    """
    zone = resolve_timezone(zone_name)
    local = date.astimezone(zone) if zone is not None else date.astimezone()
    return local.strftime("%a %b %d %Y %H:%M:%S GMT%z") + f" ({local.tzname()})"


def format_milliseconds(elapsed_ns: int, digits: int) -> str:
    """Nanoseconds as milliseconds with ``digits`` decimals, halves rounded up.

    Works on the exact integer so 2.5 ms renders as ``3`` at zero digits.
    """
    sign = "-" if elapsed_ns < 0 else ""
    units, remainder = divmod(abs(elapsed_ns) * 10**digits, 1_000_000)
    if remainder * 2 >= 1_000_000:
        units += 1
    if not digits:
        return f"{sign}{units}"
    whole, fraction = divmod(units, 10**digits)
    return f"{sign}{whole}.{fraction:0{digits}d}"


def _parse_digits(digits: str | None) -> int:
    if digits is None:
        return DEFAULT_RESPONSE_TIME_DIGITS
    try:
        value = int(digits)
    except ValueError:
        logger.warning("Invalid response-time digits %r; using %d", digits, DEFAULT_RESPONSE_TIME_DIGITS)
        return DEFAULT_RESPONSE_TIME_DIGITS
    if not 0 <= value <= 100:
        logger.warning("response-time digits %d out of range; using %d", value, DEFAULT_RESPONSE_TIME_DIGITS)
        return DEFAULT_RESPONSE_TIME_DIGITS
    return value


def _join(values: list[str]) -> str | None:
    if not values:
        return None
    return ", ".join(values)
