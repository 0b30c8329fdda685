from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Tavily (checked at first use, not at startup)
    tavily_token: str = Field(
        default="",
        validation_alias=AliasChoices("tavily_token", "tavily_api_key"),
    )

    # Content proxy / weather
    jina_reader_base_url: str = "https://r.jina.ai"
    jina_api_key: str = ""
    weather_base_url: str = "https://api.open-meteo.com/v1/forecast"
    fetch_timeout_seconds: float = 60.0

    # OpenRouter
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    default_model: str = "google/gemini-2.0-flash-001"
    openrouter_model: str = ""

    # Chat loop
    chat_max_tool_rounds: int = 5
    chat_max_tokens: int = 4096
    default_prompt: str = "flights"

    # Flight booking demo (generated sample data)
    flight_data_max_tokens: int = 2048

    # Research tools
    research_max_searches: int = 5
    research_max_searches_cap: int = 10
    search_max_results_cap: int = 20
    research_report_failures: bool = False
    analyze_max_chars: int = 120000

    # PostgreSQL (optional, chats are not persisted when empty)
    database_url: str = ""

    # App
    cors_origins: str = "http://localhost:3000"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]


settings = Settings()
