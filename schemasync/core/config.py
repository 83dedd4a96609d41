from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    app_name: str = "schemasync"
    api_host: str = "0.0.0.0"
    api_port: int = 8080

    database_url: str = "sqlite:///./schemasync.db"
    redis_url: str = "redis://localhost:6379/0"

    mongo_uri: str = "mongodb://127.0.0.1:27017"
    mongo_db: str = "local"
    mongo_server_selection_timeout_ms: int = 10000

    # Per-call bounds for the target database, in seconds
    operation_timeout_seconds: float = 30.0
    backup_timeout_seconds: float = 120.0

    backup_on_dry_run: bool = False
    success_threshold: float = 0.90
    summary_display_cap: int = 3

    workspaces_dir: str = "/data/workspaces"

settings = Settings()
