from .store import Store, create_store

__all__ = ["Store", "create_store"]
