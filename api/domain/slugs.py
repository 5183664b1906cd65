"""Domain helpers for slug validation and generation."""
from __future__ import annotations

import re
import unicodedata
from typing import Callable, Optional

SLUG_PATTERN = re.compile(r"[a-z0-9._-]{3,50}")
SLUG_MAX_LENGTH = 50
_GENERATED_STRIP = re.compile(r"[^a-z0-9.]")
_COMPANY_STRIP = re.compile(r"[^a-z0-9]+")


def normalize_slug(value: str | None) -> str:
    return (value or "").strip().lower()


def is_valid_slug(value: str | None) -> bool:
    """Return True when slug is lowercase alnum plus . _ - and 3 to 50 chars long."""
    if not value:
        return False
    return bool(SLUG_PATTERN.fullmatch(value))


def _strip_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def base_slug(first_name: str, last_name: str) -> str:
    """`Élodie`, `Durand-Petit` -> `elodie.durandpetit`."""
    raw = _strip_accents(f"{first_name}.{last_name}".lower())
    base = _GENERATED_STRIP.sub("", raw).strip(".")
    if len(base) < 3:
        base = f"user.{base}" if base else "user"
    return base[: SLUG_MAX_LENGTH - 4]


def generate_unique_slug(first_name: str, last_name: str, exists: Callable[[str], bool]) -> str:
    """Derive a profile slug from a name, appending 1, 2, ... while `exists` reports a collision."""
    base = base_slug(first_name, last_name)
    candidate = base
    counter = 0
    while exists(candidate):
        counter += 1
        candidate = f"{base}{counter}"
    return candidate


def company_slug(name: str, explicit: Optional[str] = None) -> str:
    """Companies may supply their own slug; otherwise derive one from the name."""
    if explicit:
        return normalize_slug(explicit)
    return _COMPANY_STRIP.sub("-", _strip_accents(name.lower())).strip("-")
