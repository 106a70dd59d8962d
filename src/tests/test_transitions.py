"""Review state machine: guards, audit trail and atomicity."""

from __future__ import annotations

from unittest import mock

from django.test import TestCase

from access_control.models import RoleName
from articles.models import Article, ArticleReview, ArticleStatus
from articles.transitions import TRANSITIONS, ReviewTransitionEngine
from core.errors import InvalidTransition, NotFound, Unauthorized
from tests.utils import create_rubrik, create_user, seed_rbac_basics

S = ArticleStatus


class ReviewTransitionEngineTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        roles = seed_rbac_basics()
        cls.rubrik = create_rubrik("Rubrik Seven")
        cls.other_rubrik = create_rubrik("Rubrik Eight")
        cls.author = create_user("author@test.com", role=roles[RoleName.AUTHOR.value], rubrik=cls.rubrik)
        cls.editor = create_user("editor@test.com", role=roles[RoleName.EDITOR_RUBRIK.value], rubrik=cls.rubrik)
        cls.admin = create_user("admin@test.com", role=roles[RoleName.ADMIN_RUBRIK.value], rubrik=cls.rubrik)
        cls.foreign_editor = create_user(
            "foreign@test.com", role=roles[RoleName.EDITOR_RUBRIK.value], rubrik=cls.other_rubrik
        )
        cls.super_admin = create_user("root@test.com", role=roles[RoleName.SUPER_ADMIN.value])

    def setUp(self):
        self.engine = ReviewTransitionEngine()

    def make_article(self, status=S.DRAFT, rubrik="default", **extra) -> Article:
        rubrik = self.rubrik if rubrik == "default" else rubrik
        return Article.objects.create(
            author=self.author,
            rubrik=rubrik,
            title="Budget vote",
            slug=f"budget-vote-{Article.objects.count()}",
            status=status,
            **extra,
        )

    def assert_single_audit(self, article, action, from_status, to_status, actor):
        reviews = list(ArticleReview.objects.filter(article=article))
        self.assertEqual(len(reviews), 1)
        review = reviews[0]
        self.assertEqual(review.action, action)
        self.assertEqual(review.from_status, from_status)
        self.assertEqual(review.to_status, to_status)
        self.assertEqual(review.actor_id, actor.pk)

    def test_full_pipeline_scenario(self):
        """Author submits, rubrik editor approves, rubrik admin publishes."""
        article = self.make_article()

        self.engine.submit(self.author, article)
        article.refresh_from_db()
        self.assertEqual(article.status, S.SUBMITTED)

        self.engine.approve(self.editor, article)
        article.refresh_from_db()
        self.assertEqual(article.status, S.APPROVED)

        self.assertIsNone(article.published_at)
        self.engine.publish(self.admin, article)
        article.refresh_from_db()
        self.assertEqual(article.status, S.PUBLISHED)
        self.assertIsNotNone(article.published_at)

        trail = list(article.reviews.values_list("action", "from_status", "to_status"))
        self.assertEqual(
            trail,
            [
                ("submit", "draft", "submitted"),
                ("approve", "submitted", "approved"),
                ("publish", "approved", "published"),
            ],
        )

    def test_foreign_editor_is_unauthorized_at_every_stage(self):
        for status in S:
            article = self.make_article(status)
            for name in TRANSITIONS:
                with self.assertRaises(Unauthorized, msg=(status, name)):
                    self.engine.apply(self.foreign_editor, article, name)
        self.assertFalse(ArticleReview.objects.exists())

    def test_submit_twice_is_invalid_transition(self):
        article = self.make_article()
        self.engine.submit(self.author, article)

        with self.assertRaises(InvalidTransition) as ctx:
            self.engine.submit(self.author, article)

        self.assertEqual(ctx.exception.current_status, S.SUBMITTED)
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(ArticleReview.objects.filter(article=article).count(), 1)

    def test_submit_without_rubrik_is_refused(self):
        article = self.make_article(rubrik=None)
        with self.assertRaises(Unauthorized):
            self.engine.submit(self.author, article)
        article.refresh_from_db()
        self.assertEqual(article.status, S.DRAFT)

    def test_resubmit_from_revision(self):
        article = self.make_article(S.REVISION)
        self.engine.submit(self.author, article, note="Fixed the numbers")
        self.assert_single_audit(article, "submit", "revision", "submitted", self.author)
        self.assertEqual(ArticleReview.objects.get(article=article).note, "Fixed the numbers")

    def test_every_transition_appends_exactly_one_matching_audit_row(self):
        cases = [
            ("submit", S.DRAFT, self.author),
            ("review_editor", S.SUBMITTED, self.editor),
            ("approve", S.REVIEW_EDITOR, self.editor),
            ("request_revision", S.SUBMITTED, self.editor),
            ("review_admin", S.APPROVED, self.admin),
            ("publish", S.REVIEW_ADMIN, self.admin),
            ("reject", S.APPROVED, self.admin),
        ]
        for name, source, actor in cases:
            with self.subTest(name=name):
                article = self.make_article(source)
                self.engine.apply(actor, article, name)
                article.refresh_from_db()
                target = TRANSITIONS[name].target
                self.assertEqual(article.status, target)
                self.assert_single_audit(article, name, source, target, actor)

    def test_editor_cannot_act_on_admin_stage(self):
        article = self.make_article(S.APPROVED)
        with self.assertRaises(InvalidTransition):
            self.engine.approve(self.editor, article)

    def test_admin_cannot_publish_submitted_article(self):
        article = self.make_article(S.SUBMITTED)
        with self.assertRaises(InvalidTransition):
            self.engine.publish(self.admin, article)
        article.refresh_from_db()
        self.assertEqual(article.status, S.SUBMITTED)
        self.assertIsNone(article.published_at)

    def test_super_admin_can_act_anywhere_valid(self):
        article = self.make_article(S.SUBMITTED, rubrik=self.other_rubrik)
        self.engine.approve(self.super_admin, article)
        self.engine.publish(self.super_admin, article)
        article.refresh_from_db()
        self.assertEqual(article.status, S.PUBLISHED)

    def test_audit_failure_rolls_back_status(self):
        """Status change and audit row are written together or not at all."""
        article = self.make_article()
        with mock.patch.object(ArticleReview.objects, "create", side_effect=RuntimeError("disk full")):
            with self.assertRaises(RuntimeError):
                self.engine.submit(self.author, article)
        article.refresh_from_db()
        self.assertEqual(article.status, S.DRAFT)

    def test_unknown_transition_is_not_found(self):
        with self.assertRaises(NotFound):
            self.engine.apply(self.author, self.make_article(), "archive")

    def test_reviews_are_immutable(self):
        article = self.make_article()
        self.engine.submit(self.author, article)
        review = ArticleReview.objects.get(article=article)
        review.note = "rewritten"
        with self.assertRaises(ValueError):
            review.save()
