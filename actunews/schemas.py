from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_LENGTH_MESSAGE = "Attention, pas plus de 255 caractères."

# Matches Tag.name (String(100)); used wherever a tag name is accepted.
TagName = Annotated[str, Field(min_length=1, max_length=100)]


def _required_text(value: str | None, blank_message: str, max_length: int | None = 255) -> str | None:
    """Reject blank strings with *blank_message* and over-long ones with the length message."""
    if value is None:
        return value
    if not value.strip():
        raise ValueError(blank_message)
    if max_length is not None and len(value) > max_length:
        raise ValueError(MAX_LENGTH_MESSAGE)
    return value


# --- Tag ---

class TagCreate(BaseModel):
    name: TagName


class TagResponse(BaseModel):
    id: int
    name: str
    model_config = ConfigDict(from_attributes=True)


# --- Category ---

class CategoryCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def _name(cls, value):
        return _required_text(value, "N'oubliez pas le nom de la catégorie.")


class CategoryUpdate(BaseModel):
    name: str | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, value):
        return _required_text(value, "N'oubliez pas le nom de la catégorie.")


class CategoryResponse(BaseModel):
    id: int
    name: str
    alias: str
    model_config = ConfigDict(from_attributes=True)


# --- User ---

class UserCreate(BaseModel):
    email: str = Field(max_length=180, pattern=r"^[^@\s]+@[^@\s]+$")
    firstname: str = Field(min_length=1, max_length=100)
    lastname: str = Field(min_length=1, max_length=100)
    # Length in bytes is checked by the credential hasher.
    password: str = Field(max_length=255)


class UserResponse(BaseModel):
    id: int
    email: str
    firstname: str
    lastname: str
    roles: list[str]
    created_at: datetime | None
    model_config = ConfigDict(from_attributes=True)


# --- Comment ---

class CommentCreate(BaseModel):
    content: str
    user_id: int | None = None

    @field_validator("content")
    @classmethod
    def _content(cls, value):
        return _required_text(value, "N'oubliez pas votre commentaire.", max_length=None)


class CommentResponse(BaseModel):
    id: int
    content: str
    post_id: int
    user_id: int | None
    created_at: datetime | None
    model_config = ConfigDict(from_attributes=True)


# --- Post ---
# ``alias`` is never accepted from callers: it is derived from ``title``
# when the post is created.

class PostCreate(BaseModel):
    title: str
    content: str
    image: str
    user_id: int
    category_id: int
    tags: list[TagName] = []  # tag names, created on demand

    @field_validator("title")
    @classmethod
    def _title(cls, value):
        return _required_text(value, "N'oubliez pas votre titre.")

    @field_validator("content")
    @classmethod
    def _content(cls, value):
        return _required_text(value, "N'oubliez pas votre contenu.", max_length=None)

    @field_validator("image")
    @classmethod
    def _image(cls, value):
        return _required_text(value, "N'oubliez pas votre image.")


class PostUpdate(BaseModel):
    title: str | None = None
    content: str | None = None
    image: str | None = None
    category_id: int | None = None
    tags: list[TagName] | None = None

    @field_validator("title")
    @classmethod
    def _title(cls, value):
        return _required_text(value, "N'oubliez pas votre titre.")

    @field_validator("content")
    @classmethod
    def _content(cls, value):
        return _required_text(value, "N'oubliez pas votre contenu.", max_length=None)

    @field_validator("image")
    @classmethod
    def _image(cls, value):
        return _required_text(value, "N'oubliez pas votre image.")


class PostResponse(BaseModel):
    id: int
    title: str
    alias: str
    image: str
    created_at: datetime
    updated_at: datetime
    user_id: int
    category_id: int
    user: UserResponse | None = None
    category: CategoryResponse | None = None
    tags: list[TagResponse] = []
    model_config = ConfigDict(from_attributes=True)


class PostDetail(PostResponse):
    content: str
    comments: list[CommentResponse] = []


# --- Pagination ---

class PaginatedResponse(BaseModel):
    items: list
    total: int
    page: int
    page_size: int
    pages: int


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_posts: int
    total_comments: int
    total_users: int
    total_categories: int
    avg_comments_per_post: float
    cache_info: dict = {}
    mail_info: dict = {}
