"""Document models stored through the repository layer."""

from datetime import UTC, datetime

from bson import ObjectId
from pydantic import BaseModel, ConfigDict

from mongolayer.tags import bson_field


class BaseDocument(BaseModel):
    """
    Common identity and timestamp fields for stored documents.

    Subclasses inherit ``_id``, ``created_at`` and ``updated_at``. The
    repository calls ``before_insert`` / ``before_update`` so callers never
    set timestamps by hand.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: ObjectId | None = bson_field("_id,omitempty")
    created_at: datetime | None = bson_field("created_at,omitempty")
    updated_at: datetime | None = bson_field("updated_at,omitempty")

    def before_insert(self) -> None:
        """Assign an id and creation time if missing; refresh update time."""
        now = datetime.now(UTC)
        if self.id is None:
            self.id = ObjectId()
        if self.created_at is None:
            self.created_at = now
        self.updated_at = now

    def before_update(self) -> None:
        """Refresh the update time."""
        self.updated_at = datetime.now(UTC)


class Profile(BaseModel):
    first_name: str = bson_field("first_name", default="")
    last_name: str = bson_field("last_name", default="")
    avatar: str = bson_field("avatar", default="")
    bio: str = bson_field("bio", default="")


class User(BaseDocument):
    """User account document (``users`` collection)."""

    username: str = bson_field("username", default="")
    email: str = bson_field("email", default="")
    password: str = bson_field("password", default="")
    status: str = bson_field("status", default="")
    profile: Profile = bson_field("profile", default_factory=Profile)


class Article(BaseDocument):
    """Article document (``articles`` collection)."""

    title: str = bson_field("title", default="")
    content: str = bson_field("content", default="")
    author_id: ObjectId | None = bson_field("author_id")
    tags: list[str] = bson_field("tags", default_factory=list)
    # draft, published, archived
    status: str = bson_field("status", default="")
    view_count: int = bson_field("view_count", default=0)
    like_count: int = bson_field("like_count", default=0)
    category_id: ObjectId | None = bson_field("category_id,omitempty")
    comments: list[ObjectId] = bson_field("comments", default_factory=list)


class Category(BaseDocument):
    """Article category (``categories`` collection); roots have no parent."""

    name: str = bson_field("name", default="")
    description: str = bson_field("description", default="")
    parent_id: ObjectId | None = bson_field("parent_id,omitempty")
    sort: int = bson_field("sort", default=0)
    is_active: bool = bson_field("is_active", default=False)
