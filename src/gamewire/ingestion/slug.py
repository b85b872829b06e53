"""URL-safe slug derivation from free-text titles."""

from __future__ import annotations

import re
import unicodedata
import uuid

MAX_SLUG_LENGTH = 100
MAX_SUFFIX_LENGTH = 20

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def _slug_part(text: str, limit: int) -> str:
    """Lowercase, collapse non-alphanumeric runs to '-', trim, truncate."""
    # Fold accents so "Pokémon" becomes "pokemon" rather than "pok-mon"
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    part = _NON_ALNUM_RE.sub("-", folded.lower()).strip("-")
    return part[:limit].rstrip("-")


def slugify(
    title: str,
    suffix: str | None = None,
    *,
    max_length: int = MAX_SLUG_LENGTH,
    suffix_length: int = MAX_SUFFIX_LENGTH,
) -> str:
    """Derive a lowercase, hyphen-separated slug from a title.

    An optional disambiguating suffix (platform name, external ID, video ID)
    is slugified on its own, capped at ``suffix_length``, and appended as
    ``base-suffix``; the base is shortened so the whole slug fits in
    ``max_length``. A title with no usable characters falls back to a random
    UUID rather than an empty slug.

    Uniqueness is not guaranteed here; the admission step checks the store.
    """
    suffix_part = _slug_part(suffix, suffix_length) if suffix else ""
    base_limit = max_length - len(suffix_part) - 1 if suffix_part else max_length
    base = _slug_part(title or "", base_limit)
    if not base:
        base = str(uuid.uuid4())[:base_limit].rstrip("-")
    return f"{base}-{suffix_part}" if suffix_part else base
