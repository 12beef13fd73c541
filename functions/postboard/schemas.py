"""
Pydantic schemas for the post and upload API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from postboard.constants import BrowsingMode, MetricTimeframe, PostSort


class UploadRequest(BaseModel):
    filename: str = Field(..., min_length=1, max_length=1024)
    type: Optional[str] = None


class UploadResponse(BaseModel):
    url: str
    bucket: str
    key: str


class PostsQueryInput(BaseModel):
    limit: int = Field(default=50, ge=1, le=100)
    page: int = Field(default=1, ge=1)
    cursor: Optional[int] = None
    query: Optional[str] = None
    username: Optional[str] = None
    excluded_tag_ids: list[int] = Field(default_factory=list)
    excluded_user_ids: list[int] = Field(default_factory=list)
    excluded_image_ids: list[int] = Field(default_factory=list)
    period: MetricTimeframe = MetricTimeframe.ALL_TIME
    sort: PostSort = PostSort.NEWEST
    browsing_mode: BrowsingMode = BrowsingMode.ALL


class GetPostTagsInput(BaseModel):
    query: Optional[str] = None
    limit: int = Field(default=10, ge=1, le=100)


class PostCreateInput(BaseModel):
    model_version_id: Optional[int] = None


class PostUpdateInput(BaseModel):
    """Partial update; only fields present in the payload are written."""

    title: Optional[str] = None
    detail: Optional[str] = None
    nsfw: Optional[bool] = None
    published_at: Optional[datetime] = None


class AddPostTagInput(BaseModel):
    id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=128)


class AddPostImageInput(BaseModel):
    url: str
    name: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    hash: Optional[str] = None
    index: Optional[int] = None
    nsfw: bool = False
    meta: Optional[dict] = None
    model_version_id: Optional[int] = None


class UpdatePostImageInput(BaseModel):
    """Partial update; an explicit null meta clears the stored metadata."""

    name: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    hash: Optional[str] = None
    nsfw: Optional[bool] = None
    meta: Optional[dict] = None


class ReorderPostImagesInput(BaseModel):
    image_ids: list[int] = Field(..., min_length=1)


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: Optional[str] = None
    image: Optional[str] = None


class SimpleTag(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    is_category: bool


class ImageResourceSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    model_version_id: Optional[int] = None
    name: Optional[str] = None
    detected: bool


class FeedImage(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    url: str
    name: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    hash: Optional[str] = None
    index: Optional[int] = None
    nsfw: bool
    meta: Optional[dict] = None
    generation_process: Optional[str] = None


class PostImage(FeedImage):
    post_id: int
    created_at: datetime
    tags: list[SimpleTag] = Field(default_factory=list)
    resources: list[ImageResourceSummary] = Field(default_factory=list)


class FeedPost(BaseModel):
    id: int
    nsfw: bool
    title: Optional[str] = None
    user: UserSummary
    image: FeedImage


class PostsPage(BaseModel):
    items: list[FeedPost]
    next_cursor: Optional[int] = None


class PostDetail(BaseModel):
    id: int
    nsfw: bool
    title: Optional[str] = None
    detail: Optional[str] = None
    model_version_id: Optional[int] = None
    user: UserSummary
    published_at: Optional[datetime] = None
    tags: list[SimpleTag]


class PostEditDetail(BaseModel):
    id: int
    nsfw: bool
    title: Optional[str] = None
    detail: Optional[str] = None
    model_version_id: Optional[int] = None
    user_id: int
    published_at: Optional[datetime] = None
    tags: list[SimpleTag]
    images: list[PostImage]


class PostTagResult(BaseModel):
    id: int
    name: str
    is_category: bool
    post_count: int


class PostResource(BaseModel):
    post_id: int
    name: Optional[str] = None
    model_version_id: Optional[int] = None
    model_version_name: Optional[str] = None
    model_id: Optional[int] = None
    model_name: Optional[str] = None
