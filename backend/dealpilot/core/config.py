from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central settings object.
    Production provides env vars; locally you can use backend/.env.
    """
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Completion service (OpenAI-compatible chat completions)
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE: float = 0.2
    OPENAI_TIMEOUT_SECONDS: float = 60

    # Browser-use automation service
    # The task schema differs between accounts, so the path, the instructions
    # field and the reply wrapper keys are all overridable.
    BROWSERUSE_API_KEY: str = ""
    BROWSERUSE_BASE_URL: str = "https://api.browser-use.com"
    BROWSERUSE_TASKS_PATH: str = "/api/v1/tasks"
    BROWSERUSE_INSTRUCTIONS_FIELD: str = "instructions"
    BROWSERUSE_MAX_STEPS: int = 20
    BROWSERUSE_RETURN_JSON: bool = True
    BROWSERUSE_RESULT_KEYS: str = "result,data"
    BROWSERUSE_TIMEOUT_SECONDS: float = 120

    # Server
    PORT: int = 3000
    CORS_ORIGINS: str = "*"
    LOG_LEVEL: str = "INFO"

    # Versioning
    APP_VERSION: str = "0.1.0"
    BUILD_ID: str = "dev"

    @property
    def browseruse_tasks_url(self) -> str:
        return self.BROWSERUSE_BASE_URL.rstrip("/") + self.BROWSERUSE_TASKS_PATH

    @property
    def browseruse_result_keys(self) -> List[str]:
        return _split_csv(self.BROWSERUSE_RESULT_KEYS)

    @property
    def cors_origins(self) -> List[str]:
        return _split_csv(self.CORS_ORIGINS) or ["*"]


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def missing_credentials(s: Settings) -> List[str]:
    """Names of required credentials that are empty."""
    missing = []
    for name in ("OPENAI_API_KEY", "BROWSERUSE_API_KEY"):
        if not (getattr(s, name, "") or "").strip():
            missing.append(name)
    return missing


# other modules import this
settings = Settings()

