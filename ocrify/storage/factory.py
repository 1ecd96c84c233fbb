from ocrify.config.settings import Settings
from ocrify.storage.base import BaseStore
from ocrify.storage.memory_store import MemoryStore
from ocrify.storage.postgres_store import PostgresStore


class StoreFactory:
    """Creates the configured persistence backend."""

    BACKENDS: dict[str, type[BaseStore]] = {
        "postgres": PostgresStore,
        "memory": MemoryStore,
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseStore:
        backend = settings.storage_backend.lower()
        store_cls = cls.BACKENDS.get(backend)
        if store_cls is None:
            raise ValueError(
                f"Unknown storage backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
            )
        return store_cls()
