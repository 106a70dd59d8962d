"""Serializers for the article workspace, review actions and public reads."""

from rest_framework import serializers

from organization.models import Division, Rubrik
from .models import Article, ArticleReview


class ArticleReviewSerializer(serializers.ModelSerializer):
    actor = serializers.SerializerMethodField()

    class Meta:
        model = ArticleReview
        fields = ["id", "action", "from_status", "to_status", "note", "actor", "created_at"]
        read_only_fields = fields

    @staticmethod
    def get_actor(obj):
        return obj.actor.email if obj.actor_id else None


class ArticleSerializer(serializers.ModelSerializer):
    """Full article payload returned by the workspace and review endpoints."""

    author = serializers.SerializerMethodField()
    rubrik = serializers.SerializerMethodField()
    status_label = serializers.CharField(source="get_status_display", read_only=True)
    reject_reason = serializers.CharField(read_only=True, default=None)

    class Meta:
        model = Article
        fields = [
            "id",
            "title",
            "slug",
            "status",
            "status_label",
            "excerpt",
            "content",
            "author_id",
            "author",
            "rubrik_id",
            "rubrik",
            "division_id",
            "is_anonymous",
            "meta",
            "published_at",
            "reject_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    @staticmethod
    def get_author(obj):
        return obj.author.display_name if obj.author_id else None

    @staticmethod
    def get_rubrik(obj):
        return obj.rubrik.name if obj.rubrik_id else None


class ArticleDetailSerializer(ArticleSerializer):
    reviews = ArticleReviewSerializer(many=True, read_only=True)

    class Meta(ArticleSerializer.Meta):
        fields = ArticleSerializer.Meta.fields + ["reviews"]
        read_only_fields = fields


class ArticleWriteSerializer(serializers.Serializer):
    """Input shape for article create/update."""

    title = serializers.CharField(max_length=255)
    rubrik_id = serializers.PrimaryKeyRelatedField(
        source="rubrik", queryset=Rubrik.objects.all(), required=False, allow_null=True
    )
    division_id = serializers.PrimaryKeyRelatedField(
        source="division", queryset=Division.objects.all(), required=False, allow_null=True
    )
    excerpt = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)
    content = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    is_anonymous = serializers.BooleanField(required=False)
    meta = serializers.DictField(required=False)
    submit = serializers.BooleanField(required=False, default=False)
    note = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=2000)

    @staticmethod
    def validate_meta(value):
        keywords = value.get("keywords")
        if keywords is not None and not isinstance(keywords, (list, str)):
            raise serializers.ValidationError("keywords must be a list of strings.")
        return value


class TransitionSerializer(serializers.Serializer):
    note = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=2000)


class PublishedArticleSerializer(serializers.ModelSerializer):
    """Public payload; the author is hidden for anonymous articles."""

    author = serializers.SerializerMethodField()
    rubrik = serializers.CharField(source="rubrik.name", read_only=True)

    class Meta:
        model = Article
        fields = ["title", "slug", "excerpt", "content", "author", "rubrik", "meta", "published_at"]
        read_only_fields = fields

    @staticmethod
    def get_author(obj):
        if obj.is_anonymous:
            return None
        return obj.author.display_name


__all__ = [
    "ArticleReviewSerializer",
    "ArticleSerializer",
    "ArticleDetailSerializer",
    "ArticleWriteSerializer",
    "TransitionSerializer",
    "PublishedArticleSerializer",
]
