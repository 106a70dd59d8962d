"""Review state machine for articles.

Every transition re-checks the authorization policy, verifies the current
status is an allowed source, then updates the article and appends one
``ArticleReview`` row inside a single database transaction.
"""

import logging
from dataclasses import dataclass
from types import SimpleNamespace

from django.db import transaction
from django.utils import timezone

from core.errors import InvalidTransition, NotFound, Unauthorized

from .models import Article, ArticleReview, ArticleStatus
from .policy import ArticleAction, ArticlePolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    name: str
    sources: tuple[str, ...]
    target: str
    action: ArticleAction
    stamps_published_at: bool = False

    def allows(self, status: str) -> bool:
        return status in self.sources


S = ArticleStatus

TRANSITIONS: dict[str, Transition] = {
    t.name: t
    for t in (
        Transition("submit", (S.DRAFT.value, S.REVISION.value), S.SUBMITTED.value, ArticleAction.SUBMIT),
        Transition(
            "review_editor",
            (S.SUBMITTED.value, S.REVISION.value),
            S.REVIEW_EDITOR.value,
            ArticleAction.REVIEW_AS_EDITOR,
        ),
        Transition(
            "approve",
            (S.SUBMITTED.value, S.REVIEW_EDITOR.value, S.REVISION.value),
            S.APPROVED.value,
            ArticleAction.APPROVE,
        ),
        Transition(
            "request_revision",
            (S.SUBMITTED.value, S.REVIEW_EDITOR.value, S.REVISION.value),
            S.REVISION.value,
            ArticleAction.REQUEST_REVISION,
        ),
        Transition("review_admin", (S.APPROVED.value,), S.REVIEW_ADMIN.value, ArticleAction.REVIEW_AS_ADMIN),
        Transition(
            "publish",
            (S.APPROVED.value, S.REVIEW_ADMIN.value),
            S.PUBLISHED.value,
            ArticleAction.PUBLISH,
            stamps_published_at=True,
        ),
        Transition("reject", (S.APPROVED.value, S.REVIEW_ADMIN.value), S.REJECTED.value, ArticleAction.REJECT),
    )
}


class ReviewTransitionEngine:
    """Apply named transitions to articles on behalf of an actor."""

    def __init__(self, policy=ArticlePolicy):
        self.policy = policy

    @staticmethod
    def get_transition(name: str) -> Transition:
        try:
            return TRANSITIONS[name]
        except KeyError:
            raise NotFound(f"Unknown transition '{name}'.")

    def _status_only_denial(self, actor, article, transition: Transition) -> bool:
        """True when the actor would be allowed from some valid source status."""
        for source in transition.sources:
            snapshot = SimpleNamespace(author_id=article.author_id, rubrik_id=article.rubrik_id, status=source)
            if self.policy.decide(actor, snapshot, transition.action):
                return True
        return False

    def check(self, actor, article: Article, transition: Transition) -> None:
        """Raise unless ``transition`` may be applied to ``article`` right now.

        A denial caused only by the current status is an ``InvalidTransition``;
        any other denial is ``Unauthorized``.
        """
        if self.policy.decide(actor, article, transition.action):
            if not transition.allows(article.status):
                raise InvalidTransition(transition.name, article.status, transition.sources)
            return
        if not transition.allows(article.status) and self._status_only_denial(actor, article, transition):
            raise InvalidTransition(transition.name, article.status, transition.sources)
        raise Unauthorized()

    def apply(self, actor, article: Article, name: str, note: str | None = None) -> Article:
        transition = self.get_transition(name)

        with transaction.atomic():
            locked = Article.objects.select_for_update().get(pk=article.pk)
            self.check(actor, locked, transition)

            from_status = locked.status
            locked.status = transition.target
            update_fields = ["status", "updated_at"]
            if transition.stamps_published_at:
                locked.published_at = timezone.now()
                update_fields.append("published_at")
            locked.save(update_fields=update_fields)

            ArticleReview.objects.create(
                article=locked,
                actor=actor,
                action=transition.name,
                from_status=from_status,
                to_status=transition.target,
                note=note or None,
            )

        logger.info(
            "Article %s: %s by %s (%s -> %s)",
            locked.pk,
            transition.name,
            getattr(actor, "pk", None),
            from_status,
            transition.target,
        )
        article.status = locked.status
        article.published_at = locked.published_at
        article.updated_at = locked.updated_at
        return article

    def submit(self, actor, article, note=None):
        return self.apply(actor, article, "submit", note)

    def review_as_editor(self, actor, article, note=None):
        return self.apply(actor, article, "review_editor", note)

    def approve(self, actor, article, note=None):
        return self.apply(actor, article, "approve", note)

    def request_revision(self, actor, article, note=None):
        return self.apply(actor, article, "request_revision", note)

    def review_as_admin(self, actor, article, note=None):
        return self.apply(actor, article, "review_admin", note)

    def publish(self, actor, article, note=None):
        return self.apply(actor, article, "publish", note)

    def reject(self, actor, article, note=None):
        return self.apply(actor, article, "reject", note)


__all__ = ["Transition", "TRANSITIONS", "ReviewTransitionEngine"]
