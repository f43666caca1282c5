from functools import lru_cache
import logging
import json

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Stand-ins bound to the data placeholders until real catalog/order lookups exist.
DEFAULT_STATIC_PLACEHOLDERS: dict[str, str] = {
    "product_data": "данные о товарах",
    "size_chart": "таблица размеров",
    "order_status_data": "статус заказа",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
    env: str = Field("development", alias="ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    service_name: str = Field("AI Shop Assistant Worker", alias="SERVICE_NAME")
    # Shared secret for the admin save route; unset keeps the route open
    admin_api_token: str | None = Field(None, alias="ADMIN_API_TOKEN")

    # Prompt store (GitHub contents API)
    github_api_url: str = Field("https://api.github.com", alias="GITHUB_API_URL")
    github_owner: str | None = Field(None, alias="GITHUB_OWNER")
    github_repo: str | None = Field(None, alias="GITHUB_REPO")
    prompts_path: str = Field("prompts.json", alias="PROMPTS_PATH")
    github_branch: str | None = Field(None, alias="GITHUB_BRANCH")
    github_pat: str | None = Field(None, alias="GITHUB_PAT")
    commit_message: str = Field("Update prompts.json from Admin Panel", alias="COMMIT_MESSAGE")

    # Completion backend (Gemini)
    gemini_api_key: str | None = Field(None, alias="GEMINI_API_KEY")
    gemini_model: str = Field("gemini-2.5-flash", alias="GEMINI_MODEL")
    gemini_base_url: str = Field(
        "https://generativelanguage.googleapis.com/v1beta",
        alias="GEMINI_BASE_URL",
    )

    # Telegram bot
    telegram_bot_token: str | None = Field(None, alias="TELEGRAM_BOT_TOKEN")
    telegram_api_url: str = Field("https://api.telegram.org", alias="TELEGRAM_API_URL")
    telegram_default_function_id: str = Field(
        "product_recommendation", alias="TELEGRAM_DEFAULT_FUNCTION_ID"
    )
    telegram_parse_mode: str | None = Field("Markdown", alias="TELEGRAM_PARSE_MODE")

    # None leaves outbound calls without an explicit timeout
    http_timeout_s: float | None = Field(None, alias="HTTP_TIMEOUT_S")

    # JSON mapping {placeholder: value} overriding DEFAULT_STATIC_PLACEHOLDERS
    static_placeholders_json: str | None = Field(None, alias="STATIC_PLACEHOLDERS")

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, v: str | None) -> str:
        val = (v or "INFO").strip().upper()
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if val not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {sorted(valid)}; got: {v!r}")
        return val

    @field_validator("telegram_parse_mode", mode="before")
    @classmethod
    def _validate_parse_mode(cls, v: str | None) -> str | None:
        if v is None or not str(v).strip():
            return None
        val = str(v).strip()
        valid = {"Markdown", "MarkdownV2", "HTML"}
        if val not in valid:
            raise ValueError(f"TELEGRAM_PARSE_MODE must be one of {sorted(valid)}; got: {v!r}")
        return val

    @field_validator("http_timeout_s")
    @classmethod
    def _validate_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("HTTP_TIMEOUT_S must be > 0")
        return v

    @property
    def static_placeholders(self) -> dict[str, str]:
        """Static placeholder values, defaults overlaid with STATIC_PLACEHOLDERS.

        Invalid JSON is ignored with a warning. Non-string values are cast to str.
        """
        out = dict(DEFAULT_STATIC_PLACEHOLDERS)
        raw = self.static_placeholders_json
        if not raw:
            return out
        try:
            data = json.loads(raw)
        except ValueError:
            logging.getLogger("assistant.core.config").warning(
                "Invalid STATIC_PLACEHOLDERS JSON; ignoring."
            )
            return out
        if isinstance(data, dict):
            for k, v in data.items():
                out[str(k)] = str(v)
        return out

    @property
    def store_configured(self) -> bool:
        return bool(self.github_owner and self.github_repo and self.prompts_path)


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
