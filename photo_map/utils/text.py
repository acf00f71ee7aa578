"""File-name normalisation helpers.

All functions are pure and deterministic; none raise.  ``filename_key`` is
the matching key for the gazetteer, ``base_key`` the key for curator
content rules, and ``query_from_filename`` the free-text query sent to the
forward geocoder.
"""

from __future__ import annotations

import re
import unicodedata

# Trailing ".ext" (no dots or slashes inside the extension)
_EXTENSION_RE = re.compile(r"\.[^./\\]+$")
# Runs of separator characters that split words in file names
_SEPARATOR_RE = re.compile(r"[_\-.\s]+")
_WORD_SEPARATOR_RE = re.compile(r"[_\-]+")


def strip_extension(name: str) -> str:
    """Remove the final file extension, if any."""
    return _EXTENSION_RE.sub("", name or "")


def normalize_text(value: str) -> str:
    """Lowercase, NFD-decompose and drop combining diacritical marks.

    ``"Sucevița"`` → ``"sucevita"``.
    """
    decomposed = unicodedata.normalize("NFD", (value or "").lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def filename_key(name: str) -> str:
    """Build the gazetteer matching key for a file name.

    ``"Cheile_Bicazului-2.JPG"`` → ``"cheile bicazului 2"``.
    """
    text = normalize_text(strip_extension(name))
    return _SEPARATOR_RE.sub(" ", text).strip()


def base_key(name: str) -> str:
    """Lower-case file name without its extension (content rule key)."""
    return strip_extension(name).lower().strip()


def query_from_filename(name: str) -> str:
    """Free-text geocoder query: separators become spaces, case is kept."""
    return _SEPARATOR_RE.sub(" ", strip_extension(name)).strip()


def title_from_filename(name: str) -> str:
    """Human title from a file name: ``"viscri_church"`` → ``"Viscri Church"``."""
    base = _WORD_SEPARATOR_RE.sub(" ", strip_extension(name)).strip()
    return " ".join(word[:1].upper() + word[1:] for word in base.split())
