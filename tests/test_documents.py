"""Tests for document models and their hooks."""

from datetime import UTC, datetime

from bson import ObjectId

from mongolayer.documents import Article, BaseDocument, Category, User


class TestBeforeInsert:
    def test_assigns_id_and_timestamps(self):
        user = User(username="john")

        user.before_insert()

        assert isinstance(user.id, ObjectId)
        assert user.created_at is not None
        assert user.created_at.tzinfo is UTC
        assert user.updated_at == user.created_at

    def test_keeps_existing_id_and_creation_time(self, object_id):
        created = datetime(2024, 1, 1, tzinfo=UTC)
        user = User(id=object_id, created_at=created)

        user.before_insert()

        assert user.id == object_id
        assert user.created_at == created
        assert user.updated_at > created


class TestBeforeUpdate:
    def test_refreshes_updated_at_only(self, object_id):
        created = datetime(2024, 1, 1, tzinfo=UTC)
        article = Article(id=object_id, created_at=created, updated_at=created)

        article.before_update()

        assert article.id == object_id
        assert article.created_at == created
        assert article.updated_at > created


class TestDefaults:
    def test_documents_share_base_fields(self):
        for model in (User, Article, Category):
            assert issubclass(model, BaseDocument)
            assert list(model.model_fields)[:3] == ["id", "created_at", "updated_at"]

    def test_mutable_defaults_are_not_shared(self):
        first, second = Article(), Article()
        first.tags.append("x")
        first_user, second_user = User(), User()
        first_user.profile.bio = "changed"

        assert second.tags == []
        assert second_user.profile.bio == ""

    def test_category_defaults(self):
        category = Category(name="News")

        assert category.parent_id is None
        assert category.is_active is False
        assert category.sort == 0
