"""Ban pattern construction for edge cache invalidation.

A ban pattern is a regular expression matched by the cache server against the
request path (plus query string) of cached objects, scoped to one host. The
base URL part is escaped literally; the suffix is a regex fragment appended
as-is.

    >>> ban_pattern("http://site/news/", r"\\?")
    InvalidationPattern(pattern='^/news/?\\\\?', host='site')
"""

from typing import NamedTuple
from urllib.parse import urlsplit

from django.utils.encoding import iri_to_uri

# Suffix fragments (already regexes, never escaped)
LOOSE_MATCH = r"[^\?]*"
QUERY_SUFFIX = r"\?"
EXACT_SUFFIX = r"[/]?$"

WIDGET_PARAM = "widget"

_ESCAPES = str.maketrans(
    {
        **{char: "\\" + char for char in "[]{}()|-*.\\?+^$#"},
        " ": "\\ ",
        "\t": "\\t",
        "\n": "\\n",
        "\r": "\\r",
        "\f": "\\f",
        "\v": "\\v",
    }
)


class InvalidUrlError(ValueError):
    """Raised when a URL to invalidate cannot be parsed."""

    pass


class InvalidationPattern(NamedTuple):
    """A ban: anchored path regex plus the host it applies to."""

    pattern: str
    host: str | None


def escape_path(path: str) -> str:
    """Escape every regex metacharacter in ``path`` so it matches literally."""
    return path.translate(_ESCAPES)


def ban_pattern(base_url: str, suffix: str) -> InvalidationPattern:
    """Build the ban for ``base_url`` followed by the regex ``suffix``.

    One trailing slash is removed from the base URL and matched optionally
    instead, so both forms are covered. The scheme and host are stripped from
    the pattern and returned separately as the target host.

    Raises:
        InvalidUrlError: If base_url cannot be parsed
    """
    base = base_url.removesuffix("/")

    try:
        parts = urlsplit(base_url)
    except ValueError as e:
        raise InvalidUrlError(f"Cannot parse URL {base_url!r}: {e}") from e

    path = base
    host = None
    if parts.netloc:
        authority = "//" + parts.netloc
        path = base[base.index(authority) + len(authority) :]
        host = host_from_netloc(parts.netloc)

    # Same form as Django's build_absolute_uri; the request line must be ASCII
    path = iri_to_uri(path)

    return InvalidationPattern("^" + escape_path(path) + "/?" + suffix, host)


def widget_suffix(widget_id, loose: bool = False) -> str:
    """Suffix matching any URL below the base whose query names the widget."""
    return f"{LOOSE_MATCH if loose else ''}\\?.*{WIDGET_PARAM}={widget_id}"


def page_suffix(loose: bool = False) -> str:
    """Suffix matching the full page: no query, or a query without a widget param."""
    return f"{LOOSE_MATCH if loose else ''}($|\\?(?!.*(?<=[?&]){WIDGET_PARAM}=))"


def host_from_netloc(netloc: str) -> str:
    """Host part of a netloc as written: no userinfo or port, case and IPv6 brackets kept."""
    host = netloc.rpartition("@")[2]
    if host.startswith("["):
        return host[: host.index("]") + 1]
    return host.partition(":")[0]


def strip_query(url: str) -> str:
    """Drop the query string (and anything after it) from a URL."""
    return url.split("?", 1)[0]
