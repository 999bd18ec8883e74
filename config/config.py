import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

CSE_ID_PLACEHOLDER = "your_cse_id_here"


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class Config:
    """
    Explicit pipeline configuration.

    Built once (usually via ``Config.from_env()``) and handed to the orchestrator.
    Nothing inside the pipeline reads the environment directly.
    """

    anthropic_api_key: str | None = None
    openai_api_key: str | None = None
    google_api_key: str | None = None
    google_cse_id: str | None = None

    anthropic_model: str = "claude-sonnet-4-5"
    openai_model: str = "gpt-4o-mini"
    gemini_model: str = "gemini-2.5-flash"

    answer_language: str = "Swedish"
    request_timeout_s: float = 30.0

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables.

        A ``.env`` file at the project root (or ``env_file``) is loaded first if it exists.
        """
        env_path = Path(env_file) if env_file else Path(__file__).parent.parent / ".env"
        if env_path.exists():
            load_dotenv(dotenv_path=env_path)

        return cls(
            anthropic_api_key=_clean(os.getenv("ANTHROPIC_API_KEY")),
            openai_api_key=_clean(os.getenv("OPENAI_API_KEY")),
            google_api_key=_clean(os.getenv("GOOGLE_API_KEY")),
            google_cse_id=_clean(os.getenv("GOOGLE_CSE_ID")),
            anthropic_model=os.getenv("ANTHROPIC_MODEL", cls.anthropic_model),
            openai_model=os.getenv("OPENAI_MODEL", cls.openai_model),
            gemini_model=os.getenv("GEMINI_MODEL", cls.gemini_model),
            answer_language=os.getenv("ANSWER_LANGUAGE", cls.answer_language),
            request_timeout_s=float(os.getenv("REQUEST_TIMEOUT_SECONDS", str(cls.request_timeout_s))),
        )

    @property
    def has_custom_search(self) -> bool:
        """True when Google Custom Search can be used for the site sources."""
        return bool(
            self.google_api_key and self.google_cse_id and self.google_cse_id != CSE_ID_PLACEHOLDER
        )

    def credential_summary(self) -> dict[str, bool]:
        """Which credentials are present. Safe to log."""
        return {
            "anthropic": bool(self.anthropic_api_key),
            "openai": bool(self.openai_api_key),
            "google": bool(self.google_api_key),
            "google_cse": self.has_custom_search,
        }
