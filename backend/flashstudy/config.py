from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / ".flashstudy" / "data"
    sqlite_filename: str = "flashstudy.db"
    db_timeout_seconds: float = 5.0  # sqlite busy timeout per connection
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 3001
    default_session_limit: int = 20
    default_due_limit: int = 50

    model_config = {"env_prefix": "FLASHSTUDY_"}

    @property
    def sqlite_path(self) -> Path:
        return self.data_dir / self.sqlite_filename


settings = Settings()
