from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = Field(default="sqlite+aiosqlite:///./omnifeed.db", alias="DATABASE_URL")

    poll_interval_seconds: int = Field(default=15 * 60, alias="POLL_INTERVAL_SECONDS")
    poller_enabled: bool = Field(default=True, alias="POLLER_ENABLED")
    poll_concurrency: int = Field(default=8, alias="POLL_CONCURRENCY")

    page_size: int = Field(default=25, alias="PAGE_SIZE")
    request_timeout_seconds: int = Field(default=20, alias="REQUEST_TIMEOUT_SECONDS")
    user_agent: str = Field(default="omnifeed/1.0", alias="USER_AGENT")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3333, alias="PORT")

settings = Settings()
