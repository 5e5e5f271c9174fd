# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import store_entry

from .store_entry import StoreEntry

__all__ = [
    "StoreEntry",
]
