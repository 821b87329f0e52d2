"""Tests for record <-> document conversion."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from bson import ObjectId

from mongolayer.codec import decode_document, encode_record, encode_value
from mongolayer.documents import Article, Category, Profile, User
from mongolayer.tags import dataclass_field


@dataclass
class Audit:
    created_by: str = dataclass_field("created_by", default="")
    reason: str = dataclass_field("reason,omitempty", default="")


@dataclass
class Entry:
    Title: str = "untitled"
    audit: Audit = dataclass_field(",inline", default_factory=Audit)
    cache: dict = dataclass_field("-", default_factory=dict)
    labels: list[str] = field(default_factory=list)


class TestEncodeRecord:
    def test_user_document_uses_tag_names(self, object_id):
        user = User(id=object_id, username="john", email="john@example.com")
        user.profile.bio = "dev"

        document = encode_record(user)

        assert document["_id"] == object_id
        assert document["username"] == "john"
        assert document["profile"] == {
            "first_name": "",
            "last_name": "",
            "avatar": "",
            "bio": "dev",
        }
        assert "id" not in document

    def test_omitempty_zero_fields_are_left_out(self):
        document = encode_record(User(username="john"))

        assert "_id" not in document
        assert "created_at" not in document
        assert "updated_at" not in document

    def test_fields_without_omitempty_are_always_written(self):
        document = encode_record(Article(title="t"))

        assert document["author_id"] is None
        assert document["view_count"] == 0
        assert document["tags"] == []
        assert "category_id" not in document

    def test_untagged_fields_use_lowercased_name(self):
        document = encode_record(Entry(Title="hello"))

        assert document["title"] == "hello"
        assert document["labels"] == []

    def test_inline_record_is_flattened(self):
        document = encode_record(Entry(audit=Audit(created_by="ops", reason="fix")))

        assert document["created_by"] == "ops"
        assert document["reason"] == "fix"
        assert "audit" not in document

    def test_dash_tag_is_excluded(self):
        document = encode_record(Entry(cache={"k": 1}))

        assert "cache" not in document
        assert "-" not in document


class TestEncodeValue:
    def test_lists_of_records_are_encoded(self):
        result = encode_value([Profile(bio="a"), "plain", 3])

        assert result[0]["bio"] == "a"
        assert result[1:] == ["plain", 3]

    def test_scalars_pass_through(self, object_id):
        assert encode_value(object_id) is object_id
        assert encode_value({"a": 1}) == {"a": 1}


class TestDecodeDocument:
    def test_decode_user_maps_external_names(self, object_id):
        created = datetime(2024, 1, 1, tzinfo=UTC)
        document = {
            "_id": object_id,
            "username": "john",
            "email": "john@example.com",
            "created_at": created,
            "profile": {"first_name": "John", "bio": "dev"},
            "legacy_field": True,
        }

        user = decode_document(User, document)

        assert isinstance(user, User)
        assert user.id == object_id
        assert user.created_at == created
        assert user.profile == Profile(first_name="John", bio="dev")
        assert user.status == ""

    def test_decode_optional_object_ids(self, object_id):
        category = decode_document(
            Category, {"name": "News", "parent_id": object_id, "is_active": True}
        )

        assert category.parent_id == object_id
        assert category.is_active is True

    def test_decode_dataclass_with_inline_record(self):
        entry = decode_document(
            Entry, {"title": "t", "created_by": "ops", "labels": ["x"]}
        )

        assert entry == Entry(Title="t", audit=Audit(created_by="ops"), labels=["x"])

    def test_encode_then_decode_keeps_article(self):
        article = Article(
            id=ObjectId(), title="t", tags=["a", "b"], comments=[ObjectId()]
        )

        assert decode_document(Article, encode_record(article)) == article


@dataclass
class Folder:
    name: str = dataclass_field("name", default="")
    parent: "Folder | None" = dataclass_field("parent,omitempty", default=None)
    children: list["Folder"] = dataclass_field("children", default_factory=list)


class TestNestedEncoding:
    def test_mapping_items_are_encoded_into_a_new_dict(self):
        profiles = {"main": Profile(bio="a"), "count": 2}

        result = encode_value(profiles)

        assert result == {
            "main": {"first_name": "", "last_name": "", "avatar": "", "bio": "a"},
            "count": 2,
        }
        assert result is not profiles

    def test_back_reference_to_parent_is_not_encoded(self):
        root = Folder(name="root")
        child = Folder(name="child", parent=root)
        root.children.append(child)

        assert encode_record(root) == {
            "name": "root",
            "children": [{"name": "child", "children": []}],
        }

    def test_parents_are_not_encoded_again(self):
        root = Folder(name="root")

        assert encode_value([root, "x"], parents=(root,)) == [None, "x"]
