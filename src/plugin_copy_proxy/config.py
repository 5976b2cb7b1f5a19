from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from plugin_copy_proxy.errors import ConfigurationError

DEFAULT_SPECIALTIES = "general,cardiac,emergency,spine,cancer,pediatric,mental,women,surgical,wellness"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    anthropic_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("ANTHROPIC_API_KEY", "CLAUDE_API_KEY"),
    )
    anthropic_messages_url: str = Field(
        default="https://api.anthropic.com/v1/messages",
        alias="ANTHROPIC_MESSAGES_URL",
    )
    anthropic_version: str = Field(default="2023-06-01", alias="ANTHROPIC_VERSION")
    default_model: str = Field(default="claude-3-haiku-20240307", alias="DEFAULT_MODEL")
    default_max_tokens: int = Field(default=1200, alias="DEFAULT_MAX_TOKENS")
    default_temperature: float = Field(default=0.8, alias="DEFAULT_TEMPERATURE")
    llm_timeout_seconds: float = Field(default=60.0, alias="LLM_TIMEOUT_SECONDS")

    batch_model: str = Field(default="claude-3-sonnet-20240229", alias="BATCH_MODEL")
    batch_max_tokens: int = Field(default=3000, alias="BATCH_MAX_TOKENS")
    batch_size: int = Field(default=25, alias="BATCH_SIZE")
    cross_specialty_batch_size: int = Field(default=40, alias="CROSS_SPECIALTY_BATCH_SIZE")
    batch_delay_seconds: float = Field(default=0.5, alias="BATCH_DELAY_SECONDS")
    batch_specialties: str = Field(default=DEFAULT_SPECIALTIES, alias="BATCH_SPECIALTIES")

    cors_allow_origin: str = Field(default="*", alias="CORS_ALLOW_ORIGIN")
    cors_allow_methods: str = Field(default="POST, OPTIONS", alias="CORS_ALLOW_METHODS")
    cors_allow_headers: str = Field(
        default="Content-Type, Authorization, x-api-key",
        alias="CORS_ALLOW_HEADERS",
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    def require_api_key(self) -> str:
        key = self.anthropic_api_key.strip()
        if not key:
            raise ConfigurationError("API key not configured on server")
        return key

    def specialties(self) -> list[str]:
        return [item.strip() for item in self.batch_specialties.split(",") if item.strip()]

    def cors_headers(self) -> dict[str, str]:
        return {
            "Access-Control-Allow-Origin": self.cors_allow_origin,
            "Access-Control-Allow-Methods": self.cors_allow_methods,
            "Access-Control-Allow-Headers": self.cors_allow_headers,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
