"""Article workspace, review transitions, review queue and public reads."""

from typing import Any

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from core.errors import NotFound, Unauthorized
from core.response import BaseAPIView, BaseViewSet, api_response, no_content
from .models import Article
from .policy import ArticleAction, ArticlePolicy
from .selectors import articles_for_author, published_article, review_queue
from .serializers import (
    ArticleDetailSerializer,
    ArticleSerializer,
    ArticleWriteSerializer,
    PublishedArticleSerializer,
    TransitionSerializer,
)
from .services import ArticleService
from .transitions import ReviewTransitionEngine


class ArticleViewSet(BaseViewSet):
    """Authors' workspace plus one POST endpoint per review transition."""

    serializer_class = ArticleSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ["get", "post", "put", "patch", "delete", "head", "options"]
    service = ArticleService()
    engine = ReviewTransitionEngine()

    def get_queryset(self):
        if self.action == "list":
            return articles_for_author(self.request.user)
        return Article.objects.select_related("author", "rubrik", "division").prefetch_related(
            "reviews__actor"
        )

    def get_object(self):
        article = super().get_object()
        if not ArticlePolicy.decide(self.request.user, article, ArticleAction.VIEW):
            raise Unauthorized()
        return article

    def retrieve(self, request, *args, **kwargs):
        return api_response(ArticleDetailSerializer(self.get_object()).data)

    def create(self, request, *args, **kwargs):
        serializer = ArticleWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        submit = data.pop("submit", False)
        note = data.pop("note", None)
        article = self.service.create(request.user, data, submit=submit, note=note)
        return api_response(ArticleDetailSerializer(article).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        article = self.get_object()
        serializer = ArticleWriteSerializer(data=request.data, partial=kwargs.pop("partial", False))
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        data.pop("submit", None)
        data.pop("note", None)
        self.service.update(request.user, article, data)
        # Re-fetch so the prefetched review history includes the update entry.
        return api_response(ArticleDetailSerializer(super().get_object()).data)

    def destroy(self, request, *args, **kwargs):
        self.service.delete(request.user, self.get_object())
        return no_content()

    def _transition(self, request, name: str):
        article = super().get_object()
        serializer = TransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        article = self.engine.apply(request.user, article, name, serializer.validated_data.get("note"))
        return api_response(ArticleSerializer(article).data)

    @action(detail=True, methods=["post"])
    def submit(self, request, pk=None):
        return self._transition(request, "submit")

    @action(detail=True, methods=["post"], url_path="review-editor")
    def review_editor(self, request, pk=None):
        return self._transition(request, "review_editor")

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        return self._transition(request, "approve")

    @action(detail=True, methods=["post"], url_path="request-revision")
    def request_revision(self, request, pk=None):
        return self._transition(request, "request_revision")

    @action(detail=True, methods=["post"], url_path="review-admin")
    def review_admin(self, request, pk=None):
        return self._transition(request, "review_admin")

    @action(detail=True, methods=["post"])
    def publish(self, request, pk=None):
        return self._transition(request, "publish")

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        return self._transition(request, "reject")


class ReviewQueueView(BaseAPIView):
    """Articles awaiting the current reviewer, scoped by role and rubrik."""

    permission_classes = [IsAuthenticated]

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        articles = review_queue(request.user)
        status_filter = request.query_params.get("status")
        if status_filter:
            articles = articles.filter(status=status_filter)
        return api_response(ArticleSerializer(articles, many=True).data)


class PublishedArticleView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def get(self, request, rubrik_slug: str, slug: str):
        article = published_article(rubrik_slug, slug)
        if article is None:
            raise NotFound("Article not found.")
        return api_response(PublishedArticleSerializer(article).data)


__all__ = ["ArticleViewSet", "ReviewQueueView", "PublishedArticleView"]
