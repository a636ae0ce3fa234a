"""Content persistence — the PostStore contract and its JSON backend."""

from adjacent.content.store import JsonPostStore, PostStore, create_store

__all__ = [
    "JsonPostStore",
    "PostStore",
    "create_store",
]
