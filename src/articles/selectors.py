"""Read-side queries: author workspace, review queue and published lookups."""

from django.db.models import OuterRef, QuerySet, Subquery

from access_control.models import RoleName
from access_control.store import RoleStore

from .models import Article, ArticleReview, ArticleStatus
from .policy import ADMIN_VISIBLE, EDITOR_VISIBLE


def _base() -> QuerySet:
    return Article.objects.select_related("author", "rubrik", "division")


def articles_for_author(user) -> QuerySet:
    """Own articles annotated with the note of their latest rejection."""
    latest_reject = (
        ArticleReview.objects.filter(article=OuterRef("pk"), action="reject")
        .order_by("-created_at", "-id")
        .values("note")[:1]
    )
    return _base().filter(author=user).annotate(reject_reason=Subquery(latest_reject)).order_by("-updated_at")


def review_queue(user) -> QuerySet:
    """Articles the user may act on from the review dashboard."""
    if RoleStore.has_role(user, RoleName.SUPER_ADMIN):
        return _base().exclude(status=ArticleStatus.DRAFT).order_by("-updated_at")

    rubrik_id = getattr(user, "rubrik_id", None)
    if rubrik_id is None:
        return Article.objects.none()
    if RoleStore.has_role(user, RoleName.EDITOR_RUBRIK):
        statuses = EDITOR_VISIBLE
    elif RoleStore.has_role(user, RoleName.ADMIN_RUBRIK):
        statuses = ADMIN_VISIBLE
    else:
        return Article.objects.none()
    return _base().filter(rubrik_id=rubrik_id, status__in=statuses).order_by("-updated_at")


def published_article(rubrik_slug: str, slug: str) -> Article | None:
    return (
        _base()
        .filter(status=ArticleStatus.PUBLISHED, rubrik__slug=rubrik_slug, slug=slug)
        .first()
    )


__all__ = ["articles_for_author", "review_queue", "published_article"]
