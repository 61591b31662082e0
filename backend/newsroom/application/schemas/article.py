"""Pydantic DTOs (Data Transfer Objects) for the Article feature."""

from datetime import datetime

from pydantic import BaseModel, Field

from newsroom.domain.entities import ArticleStatus


class ArticleCreate(BaseModel):
    """Schema for creating a new article."""

    title: str = Field(..., min_length=1, max_length=255, examples=["Flood relief reaches the delta"])
    content: str = Field("", examples=["Volunteers distributed supplies across twelve villages."])
    tags: str | list[str] | None = Field(None, examples=["relief, floods"])


class ArticleUpdate(BaseModel):
    """Schema for updating an existing article — all fields optional."""

    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = None
    tags: str | list[str] | None = Field(
        None,
        description="Comma-separated string or list; omit to keep the current tags.",
    )


class ArticleApprove(BaseModel):
    """Optional future publish time; omitted or past means publish immediately."""

    publish_at: datetime | None = None


class DocumentUpload(BaseModel):
    """An attachment to push to the blob store while creating an article."""

    content: bytes
    content_type: str
    filename: str = ""


class ArticleResponse(BaseModel):
    """Schema returned to the client."""

    id: int
    title: str
    content: str
    tags: list[str]
    document_url: str | None
    author_id: int
    status: ArticleStatus
    published_at: datetime | None
    view_count: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ArticleVersionResponse(BaseModel):
    id: int
    article_id: int
    version: int
    title: str
    content: str
    document_url: str | None
    tags: list[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class ArticlePage(BaseModel):
    """A page of articles plus the total matching count."""

    items: list[ArticleResponse]
    total: int
    skip: int
    limit: int
