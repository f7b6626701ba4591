"""Application state for the web pop maker: the badge catalog store."""

import os
import tempfile
import threading
from typing import Optional

from models.badge_catalog import BadgeCatalogStore
from models.storage import JsonFileStorage, StorageBackend

DATA_DIR_ENV = "POP_MAKER_DATA_DIR"


def default_data_dir() -> str:
    return os.environ.get(DATA_DIR_ENV) or os.path.join(tempfile.gettempdir(), "pop_maker")


class AppState:
    """Holds the catalog store shared by all requests."""

    def __init__(self, storage: Optional[StorageBackend] = None):
        self.data_dir = default_data_dir()
        self.store = BadgeCatalogStore(storage or JsonFileStorage(self.data_dir))
        # Serializes catalog read-modify-write cycles across request threads
        self.lock = threading.Lock()

    def use_storage(self, storage: StorageBackend) -> None:
        self.store = BadgeCatalogStore(storage)


# Module-level singleton
state = AppState()
