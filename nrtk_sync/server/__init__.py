"""nrtk_sync.server: HTTP-сервер для выдачи контента и эндпоинт синхронизации."""

from .app import ENGINE_KEY, create_app, serve
from .resolver import DENYLIST, Outcome, Resolution, clean_path, resolve

__all__ = [
    "ENGINE_KEY",
    "create_app",
    "serve",
    "DENYLIST",
    "Outcome",
    "Resolution",
    "clean_path",
    "resolve",
]
