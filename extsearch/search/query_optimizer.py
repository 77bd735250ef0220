"""Query optimizer: cleans, corrects and formats raw query text per target engine.

Pipeline (each stage toggled by QueryOptimizerOptions):
  1. Quoted phrases are pulled out verbatim and bypass every later stage
  2. Typo correction from a fixed map (exact, case-insensitive)
  3. Stop-word removal (capitalized tokens are kept)
  4. Synonym expansion, at most MAX_EXPANSIONS_PER_TERM per term
  5. Engine formatting: strip operators the target cannot honor
  6. Reassemble (phrases first), collapse whitespace between words, truncate
     at a token boundary so no phrase loses its closing quote
"""

import re
from dataclasses import dataclass, replace

MAX_QUERY_LENGTH = 200
MAX_EXPANSIONS_PER_TERM = 2

TYPO_CORRECTIONS: dict[str, str] = {
    "accomodate": "accommodate",
    "adress": "address",
    "algoritm": "algorithm",
    "begining": "beginning",
    "becuase": "because",
    "databse": "database",
    "definately": "definitely",
    "enviroment": "environment",
    "fucntion": "function",
    "goverment": "government",
    "javasript": "javascript",
    "javscript": "javascript",
    "langauge": "language",
    "libary": "library",
    "occured": "occurred",
    "privcay": "privacy",
    "programing": "programming",
    "pyhton": "python",
    "recieve": "receive",
    "recipie": "recipe",
    "seperate": "separate",
    "serach": "search",
    "teh": "the",
    "tommorow": "tomorrow",
    "tutoral": "tutorial",
    "tutroial": "tutorial",
    "untill": "until",
    "webiste": "website",
    "wich": "which",
    "wierd": "weird",
}

STOP_WORDS: frozenset[str] = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "has",
        "in", "is", "it", "its", "of", "on", "or", "that", "the", "to", "was",
        "were", "will", "with",
    }
)

SYNONYMS: dict[str, tuple[str, ...]] = {
    "indie web": ("independent web", "small web"),
    "small web": ("indie web", "personal websites"),
    "static site": ("static website", "jamstack"),
    "js": ("javascript",),
    "ts": ("typescript",),
    "py": ("python",),
    "blog": ("weblog", "journal"),
    "howto": ("tutorial", "guide"),
    "tutorial": ("guide", "howto"),
    "recipe": ("cooking", "dish"),
    "privacy": ("anonymity", "tracking-free"),
    "selfhosted": ("self-hosted", "homelab"),
}

# Engines that reject or ignore advanced operators
ENGINES_WITHOUT_OPERATORS = frozenset({"searchmysite"})

_PHRASE_RE = re.compile(r"\"([^\"]*)\"|(?<!\w)'([^']*)'(?!\w)")
_OPERATOR_RE = re.compile(
    r"^-?(site|filetype|inurl|intitle|intext|ext|before|after):\S*$", re.IGNORECASE
)
_AFFIX_RE = re.compile(r"^(\W*)(.*?)(\W*)$", re.DOTALL)


@dataclass(frozen=True)
class QueryOptimizerOptions:
    enable_spell_correction: bool = True
    enable_synonyms: bool = False
    enable_stop_word_removal: bool = False  # Off by default to preserve user intent
    target_engine: str = "general"
    max_length: int = MAX_QUERY_LENGTH

    def for_engine(self, engine_id: str) -> "QueryOptimizerOptions":
        return replace(self, target_engine=engine_id)


DEFAULT_OPTIONS = QueryOptimizerOptions()


def _core(word: str) -> tuple[str, str, str]:
    """Split a token into (leading punctuation, core, trailing punctuation)."""
    match = _AFFIX_RE.match(word)
    if match is None:
        return "", word, ""
    lead, core, trail = match.groups()
    return lead, core, trail


def extract_phrases(query: str) -> tuple[list[str], str]:
    """Pull quoted phrases out of ``query``. Returns (phrases, remainder).

    Phrases keep their quote characters and inner spacing exactly as typed.
    """
    phrases: list[str] = []

    def _take(match: re.Match[str]) -> str:
        inner = match.group(1) if match.group(1) is not None else match.group(2)
        if inner.strip():
            phrases.append(match.group(0))
        return " "

    remainder = _PHRASE_RE.sub(_take, query)
    return phrases, remainder


def correct_word(word: str) -> str:
    lead, core, trail = _core(word)
    fix = TYPO_CORRECTIONS.get(core.lower())
    if fix is None:
        return word
    if core[:1].isupper():
        fix = fix[:1].upper() + fix[1:]
    return f"{lead}{fix}{trail}"


def remove_stop_words(words: list[str]) -> list[str]:
    kept = [w for w in words if w[:1].isupper() or _core(w)[1].lower() not in STOP_WORDS]
    return kept or words


def expand_synonyms(words: list[str]) -> list[str]:
    present = {_core(w)[1].lower() for w in words}
    out: list[str] = []
    i = 0
    while i < len(words):
        term_words = words[i : i + 1]
        expansions: tuple[str, ...] = ()
        if i + 1 < len(words):
            bigram = f"{_core(words[i])[1]} {_core(words[i + 1])[1]}".lower()
            if bigram in SYNONYMS:
                term_words = words[i : i + 2]
                expansions = SYNONYMS[bigram]
        if not expansions:
            expansions = SYNONYMS.get(_core(words[i])[1].lower(), ())
        out.extend(term_words)
        added = [e for e in expansions if e not in present][:MAX_EXPANSIONS_PER_TERM]
        out.extend(added)
        present.update(added)
        i += len(term_words)
    return out


def format_for_engine(words: list[str], target_engine: str) -> list[str]:
    if target_engine in ENGINES_WITHOUT_OPERATORS:
        return [w for w in words if not _OPERATOR_RE.match(w)]
    return words


def truncate_at_word(text: str, limit: int = MAX_QUERY_LENGTH) -> str:
    if len(text) <= limit:
        return text
    cut = text[:limit]
    if text[limit] != " ":
        space = cut.rfind(" ")
        if space > 0:
            cut = cut[:space]
    return cut.rstrip()


def _truncate_token(token: str, limit: int) -> str:
    quote = token[:1]
    if len(token) > 1 and quote in "\"'" and token.endswith(quote):
        inner = truncate_at_word(token[1:-1].strip(), max(limit - 2, 0))
        return f"{quote}{inner}{quote}"
    return token[:limit]


def join_within(tokens: list[str], limit: int = MAX_QUERY_LENGTH) -> str:
    """Space-join ``tokens``, dropping whole tokens once ``limit`` would be exceeded."""
    out = ""
    for token in tokens:
        candidate = f"{out} {token}" if out else token
        if len(candidate) > limit:
            return out or _truncate_token(token, limit)
        out = candidate
    return out


def optimize_query(query: str, options: QueryOptimizerOptions | None = None) -> str:
    """Return the optimized query text; empty input returns ''."""
    if not query or not query.strip():
        return ""
    opts = options or DEFAULT_OPTIONS

    phrases, remainder = extract_phrases(query)
    words = remainder.split()
    if opts.enable_spell_correction:
        words = [correct_word(w) for w in words]
    if opts.enable_stop_word_removal:
        words = remove_stop_words(words)
    if opts.enable_synonyms:
        words = expand_synonyms(words)
    words = format_for_engine(words, opts.target_engine)

    return join_within(phrases + words, opts.max_length)
