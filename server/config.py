"""Configuration for the Studymate API server."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass
class Settings:
    """
    Server settings.

    Defaults resolve relative to the project root.
    Every field is overridable at construction for testing.
    """
    data_dir: Optional[Path] = None
    database_url: Optional[str] = None
    session_secret: Optional[str] = None
    session_ttl_hours: int = 24 * 7
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])
    log_level: str = "INFO"

    # Generative content service (summaries, flashcards, quizzes)
    content_enabled: bool = False
    content_base_url: str = "http://localhost:8080"
    content_api_key: Optional[str] = None
    content_timeout_s: int = 60
    content_max_input_chars: int = 20000

    def __post_init__(self):
        project_root = Path(__file__).resolve().parent.parent

        if self.data_dir is None:
            env_dir = os.environ.get("DATA_DIR")
            self.data_dir = Path(env_dir) if env_dir else project_root / "data"
        self.data_dir = Path(self.data_dir)

        if self.database_url is None:
            self.database_url = os.environ.get("DATABASE_URL", "sqlite:///./studymate.db")
        if self.session_secret is None:
            self.session_secret = os.environ.get("SESSION_SECRET", "dev-secret-change-in-production")

        env_ttl = os.environ.get("SESSION_TTL_HOURS")
        if env_ttl is not None:
            try:
                self.session_ttl_hours = int(env_ttl)
            except ValueError:
                pass
        if os.environ.get("CORS_ORIGINS"):
            self.cors_origins = [o.strip() for o in os.environ["CORS_ORIGINS"].split(",") if o.strip()]
        if os.environ.get("LOG_LEVEL"):
            self.log_level = os.environ["LOG_LEVEL"].upper()

        # Content service env overrides
        if os.environ.get("CONTENT_ENABLED", "").lower() in ("1", "true", "yes"):
            self.content_enabled = True
        if os.environ.get("CONTENT_BASE_URL"):
            self.content_base_url = os.environ["CONTENT_BASE_URL"]
        if self.content_api_key is None:
            self.content_api_key = os.environ.get("CONTENT_API_KEY")
        try:
            if v := os.environ.get("CONTENT_TIMEOUT_S"):
                self.content_timeout_s = int(v)
            if v := os.environ.get("CONTENT_MAX_INPUT_CHARS"):
                self.content_max_input_chars = int(v)
        except ValueError:
            pass
