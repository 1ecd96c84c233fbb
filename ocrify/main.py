from ocrify.config.settings import Settings
from ocrify.database.connection import close_pool, get_connection, init_pool
from ocrify.database.schema import apply_schema
from ocrify.logging.logger import Log
from ocrify.service import build_service


def main() -> None:
    """Entry point: configure logging -> prepare storage -> report counters."""
    settings = Settings()
    Log.configure(settings.log_level)
    uses_postgres = settings.storage_backend.lower() == "postgres"
    if uses_postgres:
        init_pool(settings)

    try:
        if uses_postgres:
            with get_connection() as conn:
                apply_schema(conn)
            Log.info("Database schema is up to date")
        service = build_service(settings)
        counters = service.get_aggregate_counters()
        Log.info(
            f"OCRify core ready ({settings.storage_backend}, {settings.text_engine}): "
            f"{counters.total_users} users, {counters.total_files} files"
        )
    finally:
        if uses_postgres:
            close_pool()


if __name__ == "__main__":
    main()
