"""Explicit pre-save normalization for articles.

The article service calls ``normalize_article`` before every save so derived
fields (status, author, slug) are filled in before persistence.
"""

import string
from typing import Any, Iterable

from django.conf import settings
from django.utils.crypto import get_random_string
from django.utils.text import slugify

from .models import Article, ArticleStatus

SLUG_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
SLUG_FALLBACK = "article"
KEYWORD_MAX_LENGTH = 64
COVER_KEYS = ("cover_url", "cover_path")


def random_suffix(length: int | None = None) -> str:
    length = length or settings.ARTICLE_SLUG_SUFFIX_LENGTH
    return get_random_string(length, allowed_chars=SLUG_SUFFIX_ALPHABET)


def generate_slug(title: str, max_length: int = 255) -> str:
    """Return ``slugify(title)`` plus a random suffix, unique among articles.

    The base is truncated so the suffixed slug fits the column.
    """
    base = slugify(title or "") or SLUG_FALLBACK
    suffix_length = settings.ARTICLE_SLUG_SUFFIX_LENGTH
    base = base[: max_length - suffix_length - 1].rstrip("-") or SLUG_FALLBACK
    while True:
        candidate = f"{base}-{random_suffix(suffix_length)}"
        if not Article.objects.filter(slug=candidate).exists():
            return candidate


def normalize_article(article: Article, actor=None, previous_title: str | None = None) -> Article:
    """Fill derived fields on ``article`` in place and return it.

    - status defaults to ``draft``;
    - author defaults to ``actor`` when one is authenticated;
    - slug is derived from the title when empty. With
      ``ARTICLE_SLUG_FOLLOWS_TITLE`` enabled, a title change on an existing
      article re-derives it as well.
    """
    if not article.status:
        article.status = ArticleStatus.DRAFT

    if not article.author_id and actor is not None and getattr(actor, "is_authenticated", False):
        article.author = actor

    title_changed = previous_title is not None and previous_title != article.title
    follows_title = settings.ARTICLE_SLUG_FOLLOWS_TITLE and article.pk is not None and title_changed
    if article.title and (not article.slug or follows_title):
        article.slug = generate_slug(article.title)

    return article


def normalize_keywords(keywords: Any) -> list[str]:
    """Trim, de-duplicate (keeping order) and drop empty or overlong keywords."""
    if isinstance(keywords, str):
        keywords = keywords.split(",")
    if not isinstance(keywords, Iterable):
        return []
    seen: dict[str, None] = {}
    for keyword in keywords:
        if not isinstance(keyword, str):
            continue
        keyword = keyword.strip()
        if keyword and len(keyword) <= KEYWORD_MAX_LENGTH:
            seen.setdefault(keyword, None)
    return list(seen)


def normalize_meta(meta: dict | None, existing: dict | None = None) -> dict:
    """Merge incoming meta with the stored one.

    Keywords are always normalized; cover keys absent from the incoming map
    are carried over from ``existing``. Unknown keys pass through unchanged.
    """
    result = dict(meta or {})
    existing = existing or {}
    if "keywords" in result:
        result["keywords"] = normalize_keywords(result["keywords"])
    elif "keywords" in existing:
        result["keywords"] = normalize_keywords(existing["keywords"])
    for key in COVER_KEYS:
        if not result.get(key) and existing.get(key):
            result[key] = existing[key]
    return result


__all__ = [
    "generate_slug",
    "normalize_article",
    "normalize_keywords",
    "normalize_meta",
    "random_suffix",
]
