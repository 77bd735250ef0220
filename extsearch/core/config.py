"""Configuration from environment variables (.env)."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_list(name: str) -> list[str]:
    return [v.strip() for v in os.getenv(name, "").split(",") if v.strip()]


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    project_root: Path
    logs_dir: Path
    log_events: bool
    log_level: str
    search_timeout_ms: int
    breaker_threshold: int
    breaker_window_seconds: float
    brave_api_key: str
    brave_base_url: str
    mojeek_api_key: str
    mojeek_base_url: str
    searxng_url: str
    searxng_mirrors: list[str]  # Tried in order after searxng_url fails
    searchmysite_url: str

    @classmethod
    def load(cls) -> "Config":
        project_root = Path(__file__).parent.parent.parent
        return cls(
            project_root=project_root,
            logs_dir=Path(os.getenv("EXTSEARCH_LOGS_DIR", str(project_root / "logs"))),
            log_events=_env_flag("EXTSEARCH_LOG_EVENTS"),
            log_level=os.getenv("EXTSEARCH_LOG_LEVEL", "INFO").upper(),
            search_timeout_ms=int(os.getenv("EXTSEARCH_TIMEOUT_MS", "3500")),
            breaker_threshold=int(os.getenv("EXTSEARCH_BREAKER_THRESHOLD", "3")),
            breaker_window_seconds=float(os.getenv("EXTSEARCH_BREAKER_WINDOW_SECONDS", "300")),
            brave_api_key=os.getenv("BRAVE_API_KEY", ""),
            brave_base_url=os.getenv("BRAVE_BASE_URL", "https://api.search.brave.com/res/v1"),
            mojeek_api_key=os.getenv("MOJEEK_API_KEY", ""),
            mojeek_base_url=os.getenv("MOJEEK_BASE_URL", "https://www.mojeek.com"),
            searxng_url=os.getenv("SEARXNG_URL", ""),
            searxng_mirrors=_env_list("SEARXNG_MIRRORS"),
            searchmysite_url=os.getenv("SEARCHMYSITE_URL", "https://searchmysite.net"),
        )

    def validate(self) -> list[str]:
        errors = []
        if self.search_timeout_ms <= 0:
            errors.append(f"EXTSEARCH_TIMEOUT_MS must be positive, got {self.search_timeout_ms}")
        if self.breaker_threshold < 1:
            errors.append(f"EXTSEARCH_BREAKER_THRESHOLD must be >= 1, got {self.breaker_threshold}")
        if self.breaker_window_seconds <= 0:
            errors.append(
                f"EXTSEARCH_BREAKER_WINDOW_SECONDS must be positive, got {self.breaker_window_seconds}"
            )
        if not self.brave_api_key and not self.mojeek_api_key and not self.searxng_url:
            errors.append("No keyed engine configured; only Search My Site will be queried")
        return errors


config = Config.load()
