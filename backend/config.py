from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from models.schemas import CostRates


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Model provider selection: "openai" or "gemini"
    llm_provider: Literal["openai", "gemini"] = Field(default="openai", alias="LLM_PROVIDER")
    provider_timeout_seconds: float = Field(default=30.0, alias="PROVIDER_TIMEOUT_SECONDS")
    cards_per_request: int = Field(default=10, ge=1, le=50, alias="CARDS_PER_REQUEST")

    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o", alias="OPENAI_MODEL")
    openai_input_cost_per_million: float = Field(default=2.50, alias="OPENAI_INPUT_COST_PER_MILLION")
    openai_output_cost_per_million: float = Field(default=10.00, alias="OPENAI_OUTPUT_COST_PER_MILLION")

    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-2.5-flash", alias="GEMINI_MODEL")
    gemini_input_cost_per_million: float = Field(default=0.30, alias="GEMINI_INPUT_COST_PER_MILLION")
    gemini_output_cost_per_million: float = Field(default=2.50, alias="GEMINI_OUTPUT_COST_PER_MILLION")

    # Per-client fixed window on the generation route, in `limits` notation
    generate_rate_limit: str = Field(default="10/minute", alias="GENERATE_RATE_LIMIT")
    # Broad slowapi limit applied to every route
    global_rate_limit: str = Field(default="200/minute", alias="GLOBAL_RATE_LIMIT")

    # Comma-separated list, "*" allows any origin
    allowed_origins: str = Field(default="*", alias="ALLOWED_ORIGINS")
    static_dir: Optional[str] = Field(default="public", alias="STATIC_DIR")

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    def model_for(self, provider: str) -> str:
        return self.gemini_model if provider == "gemini" else self.openai_model

    def rates_for(self, provider: str) -> CostRates:
        if provider == "gemini":
            return CostRates(self.gemini_input_cost_per_million, self.gemini_output_cost_per_million)
        return CostRates(self.openai_input_cost_per_million, self.openai_output_cost_per_million)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
