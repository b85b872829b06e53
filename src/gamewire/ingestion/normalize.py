"""Shared normalization helpers: text cleanup, excerpts, images, timestamps."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from html import unescape
from typing import Mapping

_HTML_TAG_RE = re.compile(r"<[^>]+>")
_BBCODE_RE = re.compile(r"\[[^\]]*\]")
_WHITESPACE_RE = re.compile(r"\s+")
_IMG_SRC_RE = re.compile(r"""<img[^>]+src=["']([^"']+)["']""", re.IGNORECASE)


def strip_html(text: str, *, strip_bbcode: bool = False) -> str:
    """Remove HTML tags, unescape entities, and collapse whitespace."""
    cleaned = _HTML_TAG_RE.sub(" ", text or "")
    if strip_bbcode:
        cleaned = _BBCODE_RE.sub(" ", cleaned)
    cleaned = unescape(cleaned).replace("\xa0", " ")
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def truncate_text(text: str, max_length: int, *, strip_bbcode: bool = False) -> str:
    """Strip markup, then cut to ``max_length`` with a trailing ellipsis."""
    cleaned = strip_html(text, strip_bbcode=strip_bbcode)
    if len(cleaned) <= max_length:
        return cleaned
    return cleaned[: max_length - 3].rstrip() + "..."


def extract_image(html: str) -> str | None:
    """Return the src of the first absolute <img> in an HTML fragment, if any."""
    match = _IMG_SRC_RE.search(html or "")
    if match is None:
        return None
    src = unescape(match.group(1))
    if src.startswith("//"):
        src = "https:" + src
    return src if src.startswith(("http://", "https://")) else None


def parse_timestamp(raw: str | None) -> str | None:
    """Normalize an RFC 2822 or ISO 8601 date string to ISO 8601 (UTC if naive)."""
    if not raw:
        return None
    raw = raw.strip()
    try:
        dt = parsedate_to_datetime(raw)
    except (TypeError, ValueError, IndexError):
        try:
            dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def from_unix(seconds: int | float | None) -> str | None:
    """Convert a Unix timestamp to an ISO 8601 UTC string."""
    if seconds is None:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()


def format_duration(seconds: int | float | None) -> str:
    """Seconds as "M:SS" or "H:MM:SS"."""
    total = int(seconds or 0)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ImageDefaults:
    """Fallback images keyed by source label, shared by every adapter."""

    by_source: Mapping[str, str] = field(default_factory=dict)
    fallback: str = "https://images.pexels.com/photos/442576/pexels-photo-442576.jpeg"

    def for_source(self, source_label: str) -> str:
        return self.by_source.get(source_label, self.fallback)
