"""Authorization policy for articles.

``decide(actor, article, action)`` answers allow/deny from the actor's role,
rubrik affiliation and the article's current status. It only reads
``author_id``, ``rubrik_id`` and ``status`` from the article and never raises:
an anonymous actor, a missing field or an unknown action simply deny.
"""

from enum import Enum

from access_control.models import RoleName
from access_control.store import RoleStore

from .models import ArticleStatus


class ArticleAction(str, Enum):
    VIEW = "view"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    SUBMIT = "submit"
    REVIEW_AS_EDITOR = "review_as_editor"
    APPROVE = "approve"
    REQUEST_REVISION = "request_revision"
    REVIEW_AS_ADMIN = "review_as_admin"
    PUBLISH = "publish"
    REJECT = "reject"


def _statuses(*members: ArticleStatus) -> frozenset[str]:
    return frozenset(member.value for member in members)


S = ArticleStatus

EDITOR_VISIBLE = _statuses(S.SUBMITTED, S.REVIEW_EDITOR, S.REVISION, S.APPROVED)
ADMIN_VISIBLE = _statuses(S.SUBMITTED, S.APPROVED, S.REVIEW_ADMIN)
AUTHOR_EDITABLE = _statuses(S.DRAFT, S.REVISION)
EDITOR_EDITABLE = _statuses(S.REVIEW_EDITOR, S.REVISION)
ADMIN_EDITABLE = _statuses(S.REVIEW_ADMIN)
AUTHOR_DELETABLE = _statuses(S.DRAFT)
SUBMITTABLE = _statuses(S.DRAFT, S.REVISION)
EDITOR_ACTIONABLE = _statuses(S.SUBMITTED, S.REVIEW_EDITOR, S.REVISION)
ADMIN_ACTIONABLE = _statuses(S.APPROVED, S.REVIEW_ADMIN)


class ArticlePolicy:
    """Side-effect-free predicates, one per action."""

    store = RoleStore

    # -- actor facts -------------------------------------------------------

    @classmethod
    def is_super_admin(cls, actor) -> bool:
        return cls.store.has_role(actor, RoleName.SUPER_ADMIN)

    @staticmethod
    def is_author(actor, article) -> bool:
        actor_id = getattr(actor, "pk", None)
        author_id = getattr(article, "author_id", None)
        return actor_id is not None and author_id is not None and actor_id == author_id

    @staticmethod
    def same_rubrik(actor, article) -> bool:
        actor_rubrik = getattr(actor, "rubrik_id", None)
        return actor_rubrik is not None and actor_rubrik == getattr(article, "rubrik_id", None)

    @classmethod
    def _scoped(cls, actor, article, role: RoleName, statuses: frozenset) -> bool:
        return (
            cls.store.has_role(actor, role)
            and cls.same_rubrik(actor, article)
            and getattr(article, "status", None) in statuses
        )

    @classmethod
    def _author_in(cls, actor, article, statuses: frozenset) -> bool:
        return cls.is_author(actor, article) and getattr(article, "status", None) in statuses

    # -- per-action predicates ---------------------------------------------

    @classmethod
    def view(cls, actor, article) -> bool:
        return (
            cls.is_super_admin(actor)
            or cls.is_author(actor, article)
            or cls._scoped(actor, article, RoleName.EDITOR_RUBRIK, EDITOR_VISIBLE)
            or cls._scoped(actor, article, RoleName.ADMIN_RUBRIK, ADMIN_VISIBLE)
        )

    @classmethod
    def create(cls, actor, article=None) -> bool:
        return cls.store.has_role(actor, RoleName.AUTHOR) or cls.is_super_admin(actor)

    @classmethod
    def update(cls, actor, article) -> bool:
        return (
            cls._author_in(actor, article, AUTHOR_EDITABLE)
            or cls._scoped(actor, article, RoleName.EDITOR_RUBRIK, EDITOR_EDITABLE)
            or cls._scoped(actor, article, RoleName.ADMIN_RUBRIK, ADMIN_EDITABLE)
            or cls.is_super_admin(actor)
        )

    @classmethod
    def delete(cls, actor, article) -> bool:
        return cls._author_in(actor, article, AUTHOR_DELETABLE) or cls.is_super_admin(actor)

    @classmethod
    def submit(cls, actor, article) -> bool:
        return (
            cls._author_in(actor, article, SUBMITTABLE)
            and getattr(article, "rubrik_id", None) is not None
        )

    @classmethod
    def review_as_editor(cls, actor, article) -> bool:
        return cls.is_super_admin(actor) or cls._scoped(
            actor, article, RoleName.EDITOR_RUBRIK, EDITOR_ACTIONABLE
        )

    approve = review_as_editor
    request_revision = review_as_editor

    @classmethod
    def review_as_admin(cls, actor, article) -> bool:
        return cls.is_super_admin(actor) or cls._scoped(
            actor, article, RoleName.ADMIN_RUBRIK, ADMIN_ACTIONABLE
        )

    publish = review_as_admin
    reject = review_as_admin

    @classmethod
    def decide(cls, actor, article, action) -> bool:
        try:
            action = ArticleAction(action)
        except ValueError:
            return False
        predicate = getattr(cls, action.value)
        return bool(predicate(actor, article))


def decide(actor, article, action) -> bool:
    """Module-level shortcut for ``ArticlePolicy.decide``."""
    return ArticlePolicy.decide(actor, article, action)


__all__ = ["ArticleAction", "ArticlePolicy", "decide"]
