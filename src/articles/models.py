"""Article and ArticleReview models for the editorial review pipeline."""

from django.conf import settings
from django.db import models


class ArticleStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    SUBMITTED = "submitted", "Submitted"
    REVIEW_EDITOR = "review_editor", "Review by Editor"
    REVISION = "revision", "Revision"
    REVISED = "revised", "Revised"
    APPROVED = "approved", "Approved"
    REVIEW_ADMIN = "review_admin", "Review by Admin"
    REJECTED = "rejected", "Rejected"
    PUBLISHED = "published", "Published"


class Article(models.Model):
    """An authored piece moving through draft, review and publication.

    Derived fields (status, author, slug) are filled in by
    ``articles.lifecycle.normalize_article`` before the service saves.
    """

    author = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="articles")
    rubrik = models.ForeignKey(
        "organization.Rubrik",
        on_delete=models.SET_NULL,
        related_name="articles",
        null=True,
        blank=True,
    )
    division = models.ForeignKey(
        "organization.Division",
        on_delete=models.SET_NULL,
        related_name="articles",
        null=True,
        blank=True,
    )
    title = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    status = models.CharField(max_length=20, choices=ArticleStatus.choices, default=ArticleStatus.DRAFT, db_index=True)
    excerpt = models.CharField(max_length=500, null=True, blank=True)
    content = models.TextField(null=True, blank=True)
    published_at = models.DateTimeField(null=True, blank=True)
    is_anonymous = models.BooleanField(default=False)
    meta = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.title

    @property
    def keywords(self) -> list[str]:
        return list((self.meta or {}).get("keywords") or [])

    @property
    def cover_url(self) -> str | None:
        return (self.meta or {}).get("cover_url")


class ArticleReview(models.Model):
    """Append-only audit entry; one row per transition or content edit."""

    article = models.ForeignKey(Article, on_delete=models.CASCADE, related_name="reviews")
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="article_reviews",
        null=True,
    )
    action = models.CharField(max_length=50)
    from_status = models.CharField(max_length=20, choices=ArticleStatus.choices, null=True, blank=True)
    to_status = models.CharField(max_length=20, choices=ArticleStatus.choices, null=True, blank=True)
    note = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.action}: {self.from_status} -> {self.to_status}"

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            raise ValueError("ArticleReview entries are immutable once created.")
        super().save(*args, **kwargs)


__all__ = ["Article", "ArticleReview", "ArticleStatus"]
