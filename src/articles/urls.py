"""Routing for the article workspace, review queue and public reads."""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import ArticleViewSet, PublishedArticleView, ReviewQueueView

router = DefaultRouter()
router.register(r"articles", ArticleViewSet, basename="article")

urlpatterns = [
    # Must precede the router so "manage" is not taken for an article id.
    path("articles/manage/", ReviewQueueView.as_view(), name="article-review-queue"),
    path("published/<slug:rubrik_slug>/<slug:slug>/", PublishedArticleView.as_view(), name="article-published"),
    path("", include(router.urls)),
]
