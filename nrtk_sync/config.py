"""
Модуль для загрузки и валидации конфигурации клиента nrtk-sync.
Значения берутся из переменных окружения NRTK_*, опционально из файла .env
(NRTK_DOT_ENV=1) и из YAML/JSON-файла, переданного через --config.
"""
from __future__ import annotations

import json
import os
import re
import errno
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import dotenv_values
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from nrtk_sync.logger import logger, mask_secret, register_secret

_STORY_EXTENSION_RE = re.compile(r"[a-z]+")
_DOT_ENV_FILE = Path(".env")
_ENV_PREFIX = "NRTK_"


class SyncConfig(BaseSettings):
    """Неизменяемая конфигурация одного процесса синхронизации."""

    model_config = SettingsConfigDict(env_prefix=_ENV_PREFIX, extra="ignore", frozen=True)

    app_name: str = Field(".nrtk", min_length=1, description="Корневая директория приложения.")
    host_name: str = Field("", description="Имя хоста (только для логов).")
    api_uuid: str = Field("", description="Идентификатор проекта в API.")
    api_token: str = Field("", description="Токен API и токен триггера синхронизации.")
    api_base_url: str = Field(
        "https://newsroomtoolkit.com/nrtk-api", description="Базовый URL удалённого API."
    )
    api_timeout: float = Field(20.0, gt=0, description="Таймаут запроса к API (секунд).")

    http_server_enabled: bool = Field(False, description="Запускать ли HTTP-сервер.")
    http_server_host: str = Field("0.0.0.0", description="Адрес для HTTP-сервера.")
    http_server_port: int = Field(8080, ge=0, le=65535, description="Порт HTTP-сервера.")
    http_server_sync_handler: str = Field(
        "/.nrtk-sync", description="Путь эндпоинта, запускающего синхронизацию."
    )

    story_extension: str = Field("html", description="Расширение файлов историй.")
    mode_infinity: int = Field(0, ge=0, description="Интервал опроса в мс (0 = один запуск).")
    mode_fetch_local: bool = Field(False, description="Читать данные из локального файла.")
    mode_force_update: bool = Field(False, description="Обновлять контент без проверки checksum.")
    local_path: str = Field("local.json", min_length=1, description="Путь к локальному JSON.")

    @field_validator("api_base_url", mode="before")
    def _strip_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @field_validator("story_extension", mode="before")
    def _validate_story_extension(cls, v: Any) -> Any:
        if v is None:
            return ""
        v = str(v)
        if v and not _STORY_EXTENSION_RE.fullmatch(v):
            logger.warning("Ignoring story extension %r: only lowercase letters are allowed", v)
            return ""
        return v

    @field_validator("http_server_sync_handler")
    def _check_sync_handler(cls, v: str) -> str:
        if not v.startswith("/") or v == "/":
            raise ValueError("sync handler must be an absolute path other than '/'")
        return v

    # ------------------------------------------------------------------ #
    # Derived values                                                     #
    # ------------------------------------------------------------------ #

    @property
    def story_suffix(self) -> str:
        """Суффикс файлов историй с точкой (``.html``) или пустая строка."""
        return f".{self.story_extension}" if self.story_extension else ""

    @property
    def app_root(self) -> Path:
        return Path(self.app_name)

    @property
    def content_dir(self) -> Path:
        return self.app_root / "www"

    @property
    def releases_dir(self) -> Path:
        return self.app_root / "releases"

    @property
    def snapshot_dir(self) -> Path:
        return self.app_root / "snapshot"

    @property
    def meta_path(self) -> Path:
        return self.app_root / "meta.json"

    @property
    def use_remote(self) -> bool:
        """Удалённый источник используется, если он не отключён и есть токен."""
        return not self.mode_fetch_local and bool(self.api_token)

    def public_dict(self) -> Dict[str, Any]:
        """Представление для вывода в консоль: токен замаскирован."""
        data = self.model_dump()
        data["api_token"] = mask_secret(self.api_token)
        return data


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def _dot_env_enabled() -> bool:
    return os.environ.get("NRTK_DOT_ENV", "") == "1"


def _unprefixed_dot_env(env_file: Path) -> dict[str, Any]:
    """
    Ключи .env без префикса NRTK_ (API_TOKEN, HTTP_SERVER_SYNC_HANDLER, ...),
    как их писали для прежнего клиента. Переменная окружения NRTK_<KEY> и
    ключ NRTK_<KEY> в том же .env имеют приоритет.
    """
    values = dotenv_values(env_file)
    found: dict[str, Any] = {}
    for key, value in values.items():
        name = key.upper()
        if value is None or name.startswith(_ENV_PREFIX):
            continue
        field = name.lower()
        if field not in SyncConfig.model_fields:
            continue
        prefixed = f"{_ENV_PREFIX}{name}"
        if prefixed in os.environ or prefixed in values:
            continue
        found[field] = value
    if found:
        logger.info("Using unprefixed keys from %s: %s", env_file, ", ".join(sorted(found)))
    return found


def load_config(path: Union[str, Path, None] = None, **overrides: Any) -> SyncConfig:
    """
    Собирает SyncConfig: файл --config > переменные окружения > .env > значения по умолчанию.
    При отсутствии указанного файла бросает FileNotFoundError.
    """
    data: dict[str, Any] = {}
    if path is not None:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

        suffix = path_obj.suffix.lower()
        if suffix in (".yaml", ".yml"):
            data = _read_yaml(path_obj)
        elif suffix == ".json":
            data = _read_json(path_obj)
        else:
            raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    env_file: Optional[Path] = None
    if _dot_env_enabled():
        if _DOT_ENV_FILE.is_file():
            env_file = _DOT_ENV_FILE
            logger.info("Overriding defaults from %s", _DOT_ENV_FILE)
            for field, value in _unprefixed_dot_env(env_file).items():
                data.setdefault(field, value)
        else:
            logger.warning("NRTK_DOT_ENV=1 but %s was not found", _DOT_ENV_FILE)

    data.update(overrides)
    config = SyncConfig(_env_file=env_file, **data)
    register_secret(config.api_token)
    return config


__all__ = ["SyncConfig", "load_config"]
