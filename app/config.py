from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RECIPES_", env_file=".env", extra="ignore"
    )

    db_url: str = "sqlite+aiosqlite:///recipe_keeper.db"
    static_dir: Path = Path("static")
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"
