from .meta_store import MetaStore, PersistedMeta

__all__ = ["MetaStore", "PersistedMeta"]
