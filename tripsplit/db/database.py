from tripsplit.db.interface import GroupStore
from tripsplit.db.memory_store import InMemoryGroupStore

store: GroupStore = InMemoryGroupStore()


def get_store() -> GroupStore:
    """FastAPI dependency handing the application's store to the routes."""
    return store
