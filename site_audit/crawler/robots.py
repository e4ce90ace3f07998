# site_audit/crawler/robots.py
"""
Разбор robots.txt и проверка URL по правилам блока ``User-agent: *``.

Проверка упрощена: если путь попадает под любой Disallow,
он разрешён только при совпадении с каким-либо Allow, без приоритета
самого длинного правила (в отличие от RFC 9309).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from urllib.parse import urlsplit

from site_audit.logger import get_logger

log = get_logger("robots")


@dataclass
class RobotsRules:
    """Префиксы Allow/Disallow для блока ``*``."""

    allow: List[str] = field(default_factory=list)
    disallow: List[str] = field(default_factory=list)
    crawl_delay: Optional[float] = None

    @classmethod
    def parse(cls, text: str) -> RobotsRules:
        rules = cls()
        in_wildcard = False
        opening = False
        for directive, value in _prepare_lines(text):
            if directive == "user-agent":
                # consecutive User-agent lines share one block
                in_wildcard = (in_wildcard and opening) or value == "*"
                opening = True
                continue
            opening = False
            if not in_wildcard:
                continue
            if directive == "allow" and value:
                rules.allow.append(value)
            elif directive == "disallow" and value:
                rules.disallow.append(value)
            elif directive == "crawl-delay":
                try:
                    rules.crawl_delay = float(value)
                except ValueError:
                    log.debug("Ignoring invalid Crawl-delay %r", value)
        return rules

    @classmethod
    def allow_all(cls) -> RobotsRules:
        return cls()

    def is_allowed(self, url: str) -> bool:
        """True, если URL не запрещён, либо запрещён, но совпал с Allow."""
        try:
            path = urlsplit(url).path or "/"
        except ValueError:
            return True
        if not any(path.startswith(prefix) for prefix in self.disallow):
            return True
        return any(path.startswith(prefix) for prefix in self.allow)


def _prepare_lines(text: str) -> List[Tuple[str, str]]:
    """Очищает текст от комментариев и разделяет на (директива, значение)."""
    lines: List[Tuple[str, str]] = []
    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue
        key, val = (part.strip() for part in line.split(":", 1))
        lines.append((key.lower(), val))
    return lines


def robots_url_for(seed: str) -> str:
    parts = urlsplit(seed)
    return f"{parts.scheme}://{parts.netloc}/robots.txt"
