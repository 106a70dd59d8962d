"""Article create/update/delete orchestrating policy, normalization and audit."""

import logging

from django.db import IntegrityError, transaction

from core.errors import Unauthorized

from .lifecycle import generate_slug, normalize_article, normalize_meta
from .models import Article, ArticleReview
from .policy import ArticleAction, ArticlePolicy
from .transitions import ReviewTransitionEngine

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "rubrik", "division", "excerpt", "content", "is_anonymous", "meta")
SLUG_SAVE_ATTEMPTS = 3


def _slug_taken(article: Article) -> bool:
    return Article.objects.filter(slug=article.slug).exclude(pk=article.pk).exists()


def save_with_unique_slug(article: Article) -> None:
    """Save ``article``, drawing a fresh slug when a concurrent writer took it."""
    for attempt in range(1, SLUG_SAVE_ATTEMPTS + 1):
        try:
            with transaction.atomic():
                article.save()
            return
        except IntegrityError:
            if attempt == SLUG_SAVE_ATTEMPTS or not article.title or not _slug_taken(article):
                raise
            logger.warning("Slug %s collided on save; retrying", article.slug)
            article.slug = generate_slug(article.title)


class ArticleService:
    def __init__(self, policy=ArticlePolicy, engine: ReviewTransitionEngine | None = None):
        self.policy = policy
        self.engine = engine or ReviewTransitionEngine(policy)

    def _authorize(self, actor, article, action: ArticleAction) -> None:
        if not self.policy.decide(actor, article, action):
            raise Unauthorized()

    def create(self, actor, data: dict, submit: bool = False, note: str | None = None) -> Article:
        """Create a draft owned by ``actor``; optionally submit it right away."""
        self._authorize(actor, None, ArticleAction.CREATE)
        article = Article(**{field: data[field] for field in EDITABLE_FIELDS if field in data})
        article.meta = normalize_meta(data.get("meta"))

        with transaction.atomic():
            normalize_article(article, actor=actor)
            save_with_unique_slug(article)
            logger.info("Article %s created by %s", article.pk, getattr(actor, "pk", None))
            if submit:
                self.engine.submit(actor, article, note)
        return article

    def update(self, actor, article: Article, data: dict) -> Article:
        """Apply content edits and record an ``update`` entry without a status change.

        The actor must still be able to view the edited article, so a
        rubrik-scoped reviewer cannot move it out of their rubrik.
        """
        self._authorize(actor, article, ArticleAction.UPDATE)
        previous_title = article.title

        for field in EDITABLE_FIELDS:
            if field == "meta" or field not in data:
                continue
            setattr(article, field, data[field])
        if "meta" in data:
            article.meta = normalize_meta(data["meta"], existing=article.meta)

        with transaction.atomic():
            self._authorize(actor, article, ArticleAction.VIEW)
            normalize_article(article, actor=actor, previous_title=previous_title)
            save_with_unique_slug(article)
            ArticleReview.objects.create(
                article=article,
                actor=actor,
                action="update",
                from_status=None,
                to_status=None,
                note=None,
            )
        logger.info("Article %s updated by %s", article.pk, getattr(actor, "pk", None))
        return article

    def delete(self, actor, article: Article) -> None:
        self._authorize(actor, article, ArticleAction.DELETE)
        article_id = article.pk
        article.delete()
        logger.info("Article %s deleted by %s", article_id, getattr(actor, "pk", None))


__all__ = ["ArticleService", "EDITABLE_FIELDS", "save_with_unique_slug"]
