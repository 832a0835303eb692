from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

import yaml

from .config import settings
from .errors import ValidationError

BANNED_WORD_MESSAGE = "The nickname contains a word that is not allowed."


def _badwords_path() -> Path:
    configured = settings.badwords_path
    if configured:
        return Path(configured)
    return Path(__file__).parent / "badwords.yml"


def load_badwords(path: Optional[Path] = None) -> set[str]:
    """Load the banned-word list from YAML, lower-cased."""
    path = path or _badwords_path()
    if not path.exists():
        return set()
    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or []
    return {str(word).lower() for word in raw if str(word).strip()}


class NicknameValidator:
    def __init__(self, badwords: Optional[Iterable[str]] = None) -> None:
        words = load_badwords() if badwords is None else badwords
        self._badwords = frozenset(w.lower() for w in words)

    def validate(self, nickname: str) -> None:
        """Raise ValidationError if *nickname* contains a banned word anywhere."""
        lower = nickname.lower()
        if any(word in lower for word in self._badwords):
            raise ValidationError(BANNED_WORD_MESSAGE)
