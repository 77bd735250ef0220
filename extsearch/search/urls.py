"""URL canonicalization: the comparison key used by dedupe, fusion and boosts.

Two URLs that differ only in scheme, ``www.``, trailing slashes or
non-whitelisted query parameters map to the same key. Normalizing a key again
returns the same key.
"""

import re
from dataclasses import dataclass
from urllib.parse import SplitResult, parse_qsl, urlencode, urlsplit

# Video ids, generic ids, pagination
KEPT_QUERY_PARAMS = frozenset({"v", "id", "p", "page"})

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.\-]*://")


@dataclass(frozen=True)
class NormalizedUrl:
    original: str
    normalized: str
    domain: str
    path: str


def _strip_www(host: str) -> str:
    while host.startswith("www.") and len(host) > 4:
        host = host[4:]
    return host


def _split(url: str) -> SplitResult | None:
    """Parse ``url``; scheme-less input is read as http. None when unusable."""
    try:
        parts = urlsplit(url)
        if not (parts.scheme and parts.netloc):
            parts = urlsplit("http://" + url)
        host = parts.hostname
    except ValueError:
        return None
    if not host or any(ch.isspace() for ch in host):
        return None
    return parts


def _fallback(url: str) -> NormalizedUrl:
    cleaned = url.strip().lower()
    previous = None
    while cleaned != previous:
        previous = cleaned
        cleaned = _strip_www(_SCHEME_RE.sub("", cleaned, count=1)).rstrip("/")
    segments = cleaned.split("/")
    return NormalizedUrl(
        original=url,
        normalized=cleaned,
        domain=segments[0] or cleaned,
        path="/" + "/".join(segments[1:]),
    )


def normalize_url(url: str) -> NormalizedUrl:
    """Canonicalize ``url``. Never raises; unparseable input gets a string-level key."""
    text = url if isinstance(url, str) else str(url or "")
    parts = _split(text)
    if parts is None:
        return _fallback(text)

    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"  # IPv6 literal
    domain = _strip_www(host)

    kept: dict[str, str] = {}
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key.lower() in KEPT_QUERY_PARAMS:
            kept[key] = value

    path = parts.path.rstrip("/") or "/"
    if kept:
        path = f"{path}?{urlencode(kept)}"

    return NormalizedUrl(original=text, normalized=domain + path, domain=domain, path=path)


def canonical_key(url: str) -> str:
    return normalize_url(url).normalized
