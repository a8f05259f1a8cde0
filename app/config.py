from enum import Enum
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


ROOT_DIR = Path(__file__).resolve().parent.parent


class Env(Enum):
    local = "local"
    dev = "dev"
    prod = "prod"


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RECIPE_BOOK_")

    env: Env = Env.local
    html_dir: Path = ROOT_DIR / "assets" / "html"
    db_url: str = "sqlite+aiosqlite:///recipe_book.db"
    # Identity provider that turns a bearer token into a uid.
    auth_url: str | None = None
    # token -> uid, used when there is no identity provider.
    auth_tokens: dict[str, str] = {}
    # Keep writing the shared root copy of categories for older clients.
    mirror_to_root: bool = True
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"
