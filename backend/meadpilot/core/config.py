from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "MeadPilot API"
    api_prefix: str = "/api/v1"
    database_url: str = "sqlite:///./meadpilot.db"
    auto_create_tables: bool = False
    log_level: str = "INFO"

    # Namespace for per-user document collections in the store.
    app_id: str = "default-app-id"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
