"""HTTP tests for the article workspace, transitions, review queue and public reads."""

from __future__ import annotations

from unittest import mock

from django.db import IntegrityError
from django.test import TestCase
from rest_framework.test import APIClient

from access_control.models import RoleName
from articles.models import Article, ArticleStatus
from articles.services import ArticleService
from tests.utils import FakeRedisMixin, client_for, create_rubrik, create_user, seed_rbac_basics

S = ArticleStatus


class ArticleApiTests(FakeRedisMixin, TestCase):
    """End-to-end pipeline over the REST endpoints."""

    @classmethod
    def setUpTestData(cls):
        roles = seed_rbac_basics()
        cls.rubrik = create_rubrik("Rubrik Seven", slug="rubrik-seven")
        cls.other_rubrik = create_rubrik("Rubrik Eight", slug="rubrik-eight")
        cls.author = create_user(
            "author@test.com", role=roles[RoleName.AUTHOR.value], rubrik=cls.rubrik, first_name="Ann"
        )
        cls.other_author = create_user("other@test.com", role=roles[RoleName.AUTHOR.value])
        cls.editor = create_user("editor@test.com", role=roles[RoleName.EDITOR_RUBRIK.value], rubrik=cls.rubrik)
        cls.foreign_editor = create_user(
            "foreign@test.com", role=roles[RoleName.EDITOR_RUBRIK.value], rubrik=cls.other_rubrik
        )
        cls.admin = create_user("admin@test.com", role=roles[RoleName.ADMIN_RUBRIK.value], rubrik=cls.rubrik)
        cls.super_admin = create_user("root@test.com", role=roles[RoleName.SUPER_ADMIN.value])

    def create_article(self, client=None, **payload):
        body = {"title": "Harbour reopens", "rubrik_id": self.rubrik.pk, "content": "Text"}
        body.update(payload)
        response = (client or client_for(self.author)).post("/articles/", body, format="json")
        self.assertEqual(response.status_code, 201, response.content)
        return response.json()["data"]

    def test_anonymous_requests_are_rejected(self):
        response = APIClient().get("/articles/")
        self.assertEqual(response.status_code, 401)
        self.assertIsNone(response.json()["data"])

    def test_create_returns_draft_with_slug(self):
        data = self.create_article(meta={"keywords": [" port ", "port", "city"]})

        self.assertEqual(data["status"], S.DRAFT)
        self.assertEqual(data["status_label"], "Draft")
        self.assertEqual(data["author_id"], str(self.author.pk))
        self.assertTrue(data["slug"].startswith("harbour-reopens-"))
        self.assertEqual(data["meta"]["keywords"], ["port", "city"])

    def test_create_validates_title_and_rubrik(self):
        client = client_for(self.author)
        missing_title = client.post("/articles/", {"content": "x"}, format="json")
        unknown_rubrik = client.post("/articles/", {"title": "x", "rubrik_id": 999_999}, format="json")

        self.assertEqual(missing_title.status_code, 400)
        self.assertEqual(unknown_rubrik.status_code, 400)
        self.assertFalse(Article.objects.exists())

    def test_editor_cannot_create(self):
        response = client_for(self.editor).post("/articles/", {"title": "x"}, format="json")
        self.assertEqual(response.status_code, 403)

    def test_full_pipeline_over_http(self):
        article = self.create_article()
        url = f"/articles/{article['id']}"

        submit = client_for(self.author).post(f"{url}/submit/", {}, format="json")
        self.assertEqual(submit.status_code, 200)
        self.assertEqual(submit.json()["data"]["status"], S.SUBMITTED)

        approve = client_for(self.editor).post(f"{url}/approve/", {"note": "Solid"}, format="json")
        self.assertEqual(approve.json()["data"]["status"], S.APPROVED)

        publish = client_for(self.admin).post(f"{url}/publish/", {}, format="json")
        self.assertEqual(publish.json()["data"]["status"], S.PUBLISHED)
        self.assertIsNotNone(publish.json()["data"]["published_at"])

        detail = client_for(self.author).get(f"{url}/").json()["data"]
        self.assertEqual(
            [(r["action"], r["from_status"], r["to_status"]) for r in detail["reviews"]],
            [
                ("submit", "draft", "submitted"),
                ("approve", "submitted", "approved"),
                ("publish", "approved", "published"),
            ],
        )
        self.assertEqual(detail["reviews"][1]["note"], "Solid")

        public = APIClient().get(f"/published/rubrik-seven/{detail['slug']}/")
        self.assertEqual(public.status_code, 200)
        self.assertEqual(public.json()["data"]["author"], "Ann")

    def test_repeated_submit_returns_conflict(self):
        article = self.create_article()
        client = client_for(self.author)
        client.post(f"/articles/{article['id']}/submit/", {}, format="json")

        response = client.post(f"/articles/{article['id']}/submit/", {}, format="json")

        self.assertEqual(response.status_code, 409)
        self.assertIsNone(response.json()["data"])
        self.assertIn("submitted", response.json()["errors"][0])

    def test_foreign_editor_gets_forbidden(self):
        article = self.create_article(submit=True)
        client = client_for(self.foreign_editor)

        self.assertEqual(client.get(f"/articles/{article['id']}/").status_code, 403)
        self.assertEqual(client.post(f"/articles/{article['id']}/approve/", {}, format="json").status_code, 403)

    def test_author_list_shows_latest_reject_reason(self):
        article = self.create_article(submit=True)
        url = f"/articles/{article['id']}"
        client_for(self.editor).post(f"{url}/approve/", {}, format="json")
        client_for(self.admin).post(f"{url}/reject/", {"note": "Off-topic"}, format="json")

        listing = client_for(self.author).get("/articles/").json()["data"]
        self.assertEqual(len(listing), 1)
        self.assertEqual(listing[0]["status"], S.REJECTED)
        self.assertEqual(listing[0]["reject_reason"], "Off-topic")

        self.assertEqual(client_for(self.other_author).get("/articles/").json()["data"], [])

    def test_update_respects_status(self):
        article = self.create_article()
        client = client_for(self.author)

        patch = client.patch(f"/articles/{article['id']}/", {"excerpt": "Short"}, format="json")
        self.assertEqual(patch.status_code, 200)
        self.assertEqual(patch.json()["data"]["excerpt"], "Short")
        self.assertEqual(patch.json()["data"]["reviews"][-1]["action"], "update")

        client.post(f"/articles/{article['id']}/submit/", {}, format="json")
        locked = client.patch(f"/articles/{article['id']}/", {"excerpt": "Again"}, format="json")
        self.assertEqual(locked.status_code, 403)

    def test_editor_cannot_move_article_out_of_rubrik(self):
        article = self.create_article(submit=True)
        url = f"/articles/{article['id']}/"
        editor = client_for(self.editor)
        editor.post(f"{url}review-editor/", {}, format="json")

        moved = editor.patch(url, {"rubrik_id": self.other_rubrik.pk}, format="json")

        self.assertEqual(moved.status_code, 403)
        self.assertIsNone(moved.json()["data"])
        stored = Article.objects.get(pk=article["id"])
        self.assertEqual(stored.rubrik_id, self.rubrik.pk)
        self.assertFalse(stored.reviews.filter(action="update").exists())

        edited = editor.patch(url, {"excerpt": "Tightened"}, format="json")
        self.assertEqual(edited.status_code, 200)
        self.assertEqual(edited.json()["data"]["reviews"][-1]["action"], "update")

    def test_slug_taken_between_check_and_save_draws_a_new_one(self):
        existing = self.create_article()
        slugs = mock.Mock(side_effect=[existing["slug"], "harbour-reopens-fresh1"])

        with mock.patch("articles.lifecycle.generate_slug", slugs), mock.patch(
            "articles.services.generate_slug", slugs
        ):
            data = self.create_article()

        self.assertEqual(data["slug"], "harbour-reopens-fresh1")
        self.assertEqual(Article.objects.count(), 2)

    def test_integrity_error_is_reported_as_conflict(self):
        with mock.patch.object(ArticleService, "create", side_effect=IntegrityError("duplicate key")):
            response = client_for(self.author).post(
                "/articles/", {"title": "Harbour reopens", "rubrik_id": self.rubrik.pk}, format="json"
            )

        self.assertEqual(response.status_code, 409)
        self.assertIsNone(response.json()["data"])

    def test_delete_draft_only(self):
        draft = self.create_article()
        submitted = self.create_article(submit=True)
        client = client_for(self.author)

        self.assertEqual(client.delete(f"/articles/{draft['id']}/").status_code, 204)
        self.assertEqual(client.delete(f"/articles/{submitted['id']}/").status_code, 403)
        self.assertEqual(client_for(self.super_admin).delete(f"/articles/{submitted['id']}/").status_code, 204)

    def test_review_queue_is_scoped(self):
        draft = self.create_article()
        submitted = self.create_article(submit=True)
        approved = self.create_article(submit=True)
        client_for(self.editor).post(f"/articles/{approved['id']}/approve/", {}, format="json")

        def queue(user):
            response = client_for(user).get("/articles/manage/")
            self.assertEqual(response.status_code, 200)
            return {item["id"] for item in response.json()["data"]}

        self.assertEqual(queue(self.editor), {submitted["id"], approved["id"]})
        self.assertEqual(queue(self.admin), {submitted["id"], approved["id"]})
        self.assertEqual(queue(self.foreign_editor), set())
        self.assertEqual(queue(self.author), set())
        self.assertNotIn(draft["id"], queue(self.super_admin))

        filtered = client_for(self.admin).get("/articles/manage/", {"status": "approved"}).json()["data"]
        self.assertEqual([item["id"] for item in filtered], [approved["id"]])

    def test_unpublished_article_is_not_public(self):
        article = self.create_article()
        response = APIClient().get(f"/published/rubrik-seven/{article['slug']}/")
        self.assertEqual(response.status_code, 404)
        self.assertIsNone(response.json()["data"])

    def test_anonymous_article_hides_author(self):
        article = self.create_article(submit=True, is_anonymous=True)
        client_for(self.super_admin).post(f"/articles/{article['id']}/approve/", {}, format="json")
        client_for(self.super_admin).post(f"/articles/{article['id']}/publish/", {}, format="json")

        response = APIClient().get(f"/published/rubrik-seven/{article['slug']}/")
        self.assertIsNone(response.json()["data"]["author"])
