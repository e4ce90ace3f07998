# === FILE: site_audit/config.py ===
"""
Модуль для загрузки и валидации конфигурации аудита SiteAudit.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError,
    field_validator,
)

DEFAULT_MAX_DEPTH = 3
DEFAULT_DELAY_MS = 100


def _non_negative_int(value: Any, default: int) -> int:
    """Приводит значение к int >= 0, иначе возвращает значение по умолчанию."""
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if isinstance(value, float) and not value.is_integer():
        return default
    return number if number >= 0 else default


class AuditConfig(BaseModel):
    """Конфигурация для одного запуска аудита."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    seed_url: HttpUrl = Field(..., description="Стартовый URL обхода.")
    max_depth: int = Field(DEFAULT_MAX_DEPTH, ge=0, description="Максимальная глубина обхода ссылок.")
    max_pages: int = Field(200, ge=1, description="Жесткий лимит по числу страниц в очереди.")
    delay_ms: int = Field(DEFAULT_DELAY_MS, ge=0, description="Пауза между запросами (мс).")
    strict_robots: bool = Field(False, description="Не загружать страницы, запрещённые robots.txt.")
    timeout: float = Field(10.0, gt=0, description="Таймаут на загрузку страницы (секунд).")
    link_timeout: float = Field(10.0, gt=0, description="Таймаут на проверку ссылки (секунд).")
    user_agent: str = Field("SiteAuditBot/1.0", min_length=1, description="Заголовок User-Agent.")
    retry_times: int = Field(1, ge=0, description="Число повторных попыток при 5xx/429.")
    low_word_count: int = Field(250, ge=0, description="Порог малого количества слов.")
    check_links: bool = Field(True, description="Проверять статусы всех найденных ссылок.")
    proxy: Optional[str] = Field(None, description="HTTP-прокси для всех запросов.")

    @field_validator("seed_url", mode="before")
    def _strip_whitespace(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("max_depth", mode="before")
    def _fallback_depth(cls, v: Any) -> int:
        return _non_negative_int(v, DEFAULT_MAX_DEPTH)

    @field_validator("delay_ms", mode="before")
    def _fallback_delay(cls, v: Any) -> int:
        return _non_negative_int(v, DEFAULT_DELAY_MS)

    @property
    def seed(self) -> str:
        return str(self.seed_url)

    @property
    def delay(self) -> float:
        """Пауза между запросами в секундах."""
        return self.delay_ms / 1000


_DEFAULT_CFG = Path("configs/default.yaml")


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


def read_config_file(path: Union[str, Path, None]) -> dict[str, Any]:
    """Читает YAML/JSON-файл конфига в словарь без валидации."""
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")


def load_config(path: Union[str, Path, None], **overrides: Any) -> AuditConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект AuditConfig.
    Значения из ``overrides`` (не None) заменяют значения из файла.
    При отсутствии файла конфига бросает FileNotFoundError.
    """
    data = read_config_file(path)
    data.update({k: v for k, v in overrides.items() if v is not None})
    return AuditConfig(**data)


__all__ = ["AuditConfig", "ValidationError", "load_config", "read_config_file"]
