from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "ocrify"
    db_username: str = "ocrify"
    db_password: str = "secret"
    db_pool_max_size: int = 10

    storage_backend: str = "postgres"

    text_engine: str = "pdfplumber"
    ocr_language: str = "eng"

    bulk_worker_count: int = 4
    max_bulk_files: int = 10
    default_output_type: str = "TXT"
