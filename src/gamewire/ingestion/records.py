"""Candidate records: the normalized shape every adapter produces."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from gamewire.ingestion.slug import SLUG_RE

STATUS_DRAFT = "draft"
STATUS_PUBLISHED = "published"
VALID_STATUSES = frozenset({STATUS_DRAFT, STATUS_PUBLISHED})

MAX_EXCERPT_LENGTH = 300

VALID_POST_PLATFORMS = frozenset({"ps", "xbox", "nintendo", "other"})
VALID_POST_TYPES = frozenset({"game-update", "studio-announcement"})


@dataclass(frozen=True)
class ReviewDetails:
    platform: str
    genre: str
    developer: str
    publisher: str
    release_date: str | None = None
    rating: float | None = None


@dataclass(frozen=True)
class GalleryDetails:
    thumbnail_url: str | None = None
    game_title: str | None = None


@dataclass(frozen=True)
class VideoDetails:
    video_url: str
    duration: str = ""


@dataclass(frozen=True)
class PostDetails:
    platform: str
    post_type: str
    source_url: str


@dataclass(frozen=True)
class ReleaseDetails:
    release_date: str
    platform: str
    region: str
    source_url: str | None = None


# content_type -> (table, details class or None)
CONTENT_TYPES: dict[str, tuple[str, type | None]] = {
    "news_article": ("news_articles", None),
    "game_review": ("game_reviews", ReviewDetails),
    "gallery_image": ("gallery_images", GalleryDetails),
    "video": ("videos", VideoDetails),
    "news_post": ("news_posts", PostDetails),
    "game_release": ("game_releases", ReleaseDetails),
}


@dataclass(frozen=True)
class CandidateRecord:
    """Normalized, not-yet-persisted content unit emitted by an adapter.

    ``source_identifier`` is the dedup key when the origin exposes a stable
    ID (canonical URL, external numeric ID); otherwise the slug stands in.
    """

    content_type: str
    title: str
    slug: str
    excerpt: str
    body: str
    category: str
    source_label: str
    status: str
    image_url: str | None = None
    source_identifier: str | None = None
    published_at: str | None = None
    details: (
        ReviewDetails | GalleryDetails | VideoDetails | PostDetails | ReleaseDetails | None
    ) = None

    @property
    def dedup_key(self) -> str:
        return self.source_identifier or self.slug

    @property
    def table(self) -> str:
        return CONTENT_TYPES[self.content_type][0]


def _is_absolute_url(url: str) -> bool:
    return url.startswith(("http://", "https://"))


def validate_candidate(record: CandidateRecord) -> list[str]:
    """Validate a CandidateRecord against the persistence contract. Returns a list of errors."""
    errors: list[str] = []
    if record.content_type not in CONTENT_TYPES:
        errors.append(
            f"content_type '{record.content_type}' is not valid; "
            f"must be one of: {', '.join(sorted(CONTENT_TYPES))}"
        )
    else:
        expected = CONTENT_TYPES[record.content_type][1]
        if expected is None and record.details is not None:
            errors.append(f"{record.content_type} does not take details")
        elif expected is not None and not isinstance(record.details, expected):
            errors.append(f"{record.content_type} requires {expected.__name__}")

    if not record.title or not record.title.strip():
        errors.append("title is required and must be non-empty")
    if not record.slug or not SLUG_RE.match(record.slug):
        errors.append(f"slug '{record.slug}' is not URL-safe")
    if not record.body or not record.body.strip():
        errors.append("body is required and must be non-empty")
    if record.excerpt is None or len(record.excerpt) > MAX_EXCERPT_LENGTH:
        errors.append(f"excerpt is required and must be at most {MAX_EXCERPT_LENGTH} chars")
    if not record.category:
        errors.append("category is required")
    if not record.source_label:
        errors.append("source_label is required")
    if record.status not in VALID_STATUSES:
        errors.append(f"status '{record.status}' is not valid; must be draft or published")
    if record.image_url is not None and not _is_absolute_url(record.image_url):
        errors.append(f"image_url '{record.image_url}' is not an absolute URL")
    if record.published_at is not None:
        try:
            datetime.fromisoformat(record.published_at)
        except ValueError:
            errors.append(f"published_at '{record.published_at}' is not valid ISO 8601")

    if isinstance(record.details, PostDetails):
        if record.details.platform not in VALID_POST_PLATFORMS:
            errors.append(f"platform '{record.details.platform}' is not valid")
        if record.details.post_type not in VALID_POST_TYPES:
            errors.append(f"post_type '{record.details.post_type}' is not valid")
    if isinstance(record.details, VideoDetails) and not record.details.video_url:
        errors.append("video_url is required")
    return errors


def ensure_valid(record: CandidateRecord) -> CandidateRecord:
    """Raise ValueError if the record violates the contract; return it otherwise."""
    errors = validate_candidate(record)
    if errors:
        raise ValueError(f"Invalid CandidateRecord: {'; '.join(errors)}")
    return record


def to_row(record: CandidateRecord, now: str | None = None) -> dict:
    """Map a record to its table's columns, field by field.

    ``id`` and ``created_at`` are assigned by the admission step on insert.
    """
    now = now or datetime.now(timezone.utc).isoformat()
    row: dict = {
        "title": record.title,
        "slug": record.slug,
        "excerpt": record.excerpt,
        "body": record.body,
        "image_url": record.image_url,
        "category": record.category,
        "source_label": record.source_label,
        "source_key": record.dedup_key,
        "published_at": record.published_at or now,
        "status": record.status,
        "updated_at": now,
    }
    details = record.details
    if isinstance(details, ReviewDetails):
        row["platform"] = details.platform
        row["genre"] = details.genre
        row["developer"] = details.developer
        row["publisher"] = details.publisher
        row["release_date"] = details.release_date
        row["rating"] = details.rating
    elif isinstance(details, GalleryDetails):
        row["thumbnail_url"] = details.thumbnail_url
        row["game_title"] = details.game_title
    elif isinstance(details, VideoDetails):
        row["video_url"] = details.video_url
        row["duration"] = details.duration
    elif isinstance(details, PostDetails):
        row["platform"] = details.platform
        row["post_type"] = details.post_type
        row["source_url"] = details.source_url
    elif isinstance(details, ReleaseDetails):
        row["release_date"] = details.release_date
        row["platform"] = details.platform
        row["region"] = details.region
        row["source_url"] = details.source_url
    return row
