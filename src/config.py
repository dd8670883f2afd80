import os
from dataclasses import dataclass


@dataclass(frozen=True)
class AgentSettings:
    """Per-request scalar configuration consumed by the agent pipeline."""

    llm_model: str
    llm_temperature: float
    llm_max_tokens: int
    max_link_fetch_tokens: int
    max_image_bytes: int
    link_fetch_timeout_seconds: float


class Config:
    DEFAULT_LLM_MODEL = "gemini/gemini-2.5-flash"
    DEFAULT_LLM_TEMPERATURE = 0.7
    DEFAULT_LLM_MAX_TOKENS = 4000
    DEFAULT_MAX_LINK_FETCH_TOKENS = 2000
    DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024
    DEFAULT_LINK_FETCH_TIMEOUT_SECONDS = 5.0
    DEFAULT_LINEAR_SCOPES = "read,write,app:assignable,app:mentionable"
    DEFAULT_STORE_DB_PATH = "data/firstdraft.db"

    @staticmethod
    def require_env(name: str) -> str:
        value = os.getenv(name, "").strip()
        if not value:
            raise RuntimeError(f"Missing required env var: {name}")
        return value

    @staticmethod
    def require_gemini_api_key() -> str:
        gemini_key = os.getenv("GEMINI_API_KEY", "").strip()
        if gemini_key:
            return gemini_key
        legacy_key = os.getenv("GOOGLE_API_KEY", "").strip()
        if legacy_key:
            return legacy_key
        raise RuntimeError("Missing required env var: GEMINI_API_KEY (or GOOGLE_API_KEY)")

    @staticmethod
    def get_llm_model() -> str:
        return os.getenv("FIRSTDRAFT_LLM_MODEL", Config.DEFAULT_LLM_MODEL).strip() or Config.DEFAULT_LLM_MODEL

    @staticmethod
    def get_llm_temperature() -> float:
        return _float_env("FIRSTDRAFT_LLM_TEMPERATURE", Config.DEFAULT_LLM_TEMPERATURE)

    @staticmethod
    def get_llm_max_tokens() -> int:
        return _positive_int_env("FIRSTDRAFT_LLM_MAX_TOKENS", Config.DEFAULT_LLM_MAX_TOKENS)

    @staticmethod
    def get_max_link_fetch_tokens() -> int:
        return _positive_int_env("FIRSTDRAFT_MAX_LINK_FETCH_TOKENS", Config.DEFAULT_MAX_LINK_FETCH_TOKENS)

    @staticmethod
    def get_max_image_bytes() -> int:
        return _positive_int_env("FIRSTDRAFT_MAX_IMAGE_BYTES", Config.DEFAULT_MAX_IMAGE_BYTES)

    @staticmethod
    def get_link_fetch_timeout_seconds() -> float:
        return _float_env("FIRSTDRAFT_LINK_FETCH_TIMEOUT_SECONDS", Config.DEFAULT_LINK_FETCH_TIMEOUT_SECONDS)

    @staticmethod
    def get_linear_scopes() -> str:
        return os.getenv("LINEAR_SCOPES", Config.DEFAULT_LINEAR_SCOPES).strip() or Config.DEFAULT_LINEAR_SCOPES

    @staticmethod
    def get_webhook_secret() -> str:
        return os.getenv("LINEAR_WEBHOOK_SECRET", "").strip()

    @staticmethod
    def get_public_url() -> str:
        return Config.require_env("FIRSTDRAFT_PUBLIC_URL").rstrip("/")

    @staticmethod
    def get_store_db_path() -> str:
        return os.getenv("FIRSTDRAFT_STORE_DB_PATH", Config.DEFAULT_STORE_DB_PATH)

    @staticmethod
    def load_agent_settings() -> AgentSettings:
        return AgentSettings(
            llm_model=Config.get_llm_model(),
            llm_temperature=Config.get_llm_temperature(),
            llm_max_tokens=Config.get_llm_max_tokens(),
            max_link_fetch_tokens=Config.get_max_link_fetch_tokens(),
            max_image_bytes=Config.get_max_image_bytes(),
            link_fetch_timeout_seconds=Config.get_link_fetch_timeout_seconds(),
        )


def _positive_int_env(name: str, default: int) -> int:
    """Read a positive integer env var, raising RuntimeError on bad input."""
    raw_value = os.getenv(name, "").strip()
    if not raw_value:
        return default
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise RuntimeError(f"Invalid {name}: expected a positive integer.") from exc
    if value <= 0:
        raise RuntimeError(f"Invalid {name}: expected a positive integer.")
    return value


def _float_env(name: str, default: float) -> float:
    """Read a non-negative float env var, raising RuntimeError on bad input."""
    raw_value = os.getenv(name, "").strip()
    if not raw_value:
        return default
    try:
        value = float(raw_value)
    except ValueError as exc:
        raise RuntimeError(f"Invalid {name}: expected a number.") from exc
    if value < 0:
        raise RuntimeError(f"Invalid {name}: expected a non-negative number.")
    return value
