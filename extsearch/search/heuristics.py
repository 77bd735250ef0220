"""Domain heuristics: indie-web detection, privacy estimate, content-type guess.

Every function here is total: any string in, a value from the declared range out.
"""

from urllib.parse import urlsplit

from extsearch.contracts.search_v1 import ContentType

INDIE_SUFFIXES: tuple[str, ...] = (
    ".github.io",
    ".gitlab.io",
    ".netlify.app",
    ".vercel.app",
    ".surge.sh",
    ".neocities.org",
    ".wordpress.com",
    ".blogspot.com",
    ".tumblr.com",
    ".substack.com",
    ".ghost.io",
    ".hashnode.dev",
    ".dev.to",
)

CORPORATE_KEYWORDS: tuple[str, ...] = ("corp", "inc", "llc", "ltd", "company", "business")

PRIVACY_GOOD: tuple[str, ...] = (
    "duckduckgo.com",
    "searx.be",
    "qwant.com",
    "mojeek.com",
    "archive.org",
    "eff.org",
    "privacytools.io",
    "signal.org",
)

PRIVACY_BAD: tuple[str, ...] = (
    "facebook.com",
    "instagram.com",
    "tiktok.com",
    "amazon.com",
    "google.com",
    "twitter.com",
    "x.com",
)

EXCLUDED_DOMAINS: tuple[str, ...] = (
    "wikipedia.org",
    "wikimedia.org",
    "wikidata.org",
    "wikiquote.org",
    "google.com",
    "youtube.com",
    "facebook.com",
    "twitter.com",
    "x.com",
    "cnn.com",
    "bbc.com",
    "nytimes.com",
    "reddit.com",
    "stackoverflow.com",
)

PRIVACY_GOOD_SCORE = 0.9
PRIVACY_BAD_SCORE = 0.2
PRIVACY_DEFAULT_SCORE = 0.5


def _matches_domain(domain: str, entry: str) -> bool:
    return domain == entry or domain.endswith("." + entry)


def _strip_www(host: str) -> str:
    while host.startswith("www.") and len(host) > 4:
        host = host[4:]
    return host


def is_indie_web(domain: str) -> bool:
    """Heuristic: free-hosting/blog platform subdomain, or a short non-corporate domain."""
    d = (domain or "").strip().lower()
    if d.endswith(INDIE_SUFFIXES):
        return True
    if any(keyword in d for keyword in CORPORATE_KEYWORDS):
        return False
    return len(d.split(".")) <= 2


def privacy_score(domain: str) -> float:
    d = (domain or "").strip().lower()
    if any(_matches_domain(d, good) for good in PRIVACY_GOOD):
        return PRIVACY_GOOD_SCORE
    if any(_matches_domain(d, bad) for bad in PRIVACY_BAD):
        return PRIVACY_BAD_SCORE
    return PRIVACY_DEFAULT_SCORE


def extract_domain(url: str) -> str:
    """Host of ``url`` without ``www.``; falls back to the third slash-segment."""
    text = url or ""
    try:
        host = urlsplit(text).hostname
    except ValueError:
        host = None
    if not host:
        parts = text.split("/")
        host = parts[2] if len(parts) > 2 else text
    return _strip_www(host.lower())


def guess_content_type(url: str, title: str, snippet: str | None = None) -> ContentType:
    combined = f"{url} {title} {snippet or ''}".lower()
    url_lower = (url or "").lower()

    if any(domain in url_lower for domain in EXCLUDED_DOMAINS):
        return ContentType.EXCLUDED
    if "wiki" in combined:
        return ContentType.WIKI
    if (
        "blog" in combined
        or "/post/" in url_lower
        or "/article/" in url_lower
        or "medium.com" in url_lower
        or "substack.com" in url_lower
    ):
        return ContentType.BLOG
    if "forum" in combined or "discussion" in combined:
        return ContentType.FORUM
    if (
        "github.io" in url_lower
        or "netlify" in url_lower
        or "vercel" in url_lower
        or "portfolio" in combined
        or "personal" in combined
    ):
        return ContentType.PERSONAL
    if any(word in combined for word in ("shop", "store", "buy", "price", "sale")):
        return ContentType.COMMERCIAL
    return ContentType.UNKNOWN
