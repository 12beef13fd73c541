"""
HTTP routes for posts, post tags, post images and upload signing.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from postboard.config import Settings, get_settings
from postboard.constants import BrowsingMode, MetricTimeframe, PostSort
from postboard.dependencies import (
    get_current_user_id,
    get_post_repository,
    get_storage_client,
    get_tag_repository,
)
from postboard.errors import AuthorizationError
from postboard.posts import PostRepository
from postboard.schemas import (
    AddPostImageInput,
    AddPostTagInput,
    GetPostTagsInput,
    PostCreateInput,
    PostDetail,
    PostEditDetail,
    PostImage,
    PostResource,
    PostsPage,
    PostsQueryInput,
    PostTagResult,
    PostUpdateInput,
    ReorderPostImagesInput,
    SimpleTag,
    UpdatePostImageInput,
    UploadRequest,
    UploadResponse,
)
from postboard.storage import StorageClient
from postboard.tags import TagRepository
from postboard.upload import issue_upload_credentials

router = APIRouter()


def _parse_ids(value: str | None, name: str) -> list[int]:
    if not value:
        return []
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(
            status_code=400, detail=f"{name} must be a comma separated list of ids"
        )


def _require_user(user_id: Optional[int]) -> int:
    if not user_id:
        raise AuthorizationError()
    return user_id


@router.post("/s3-upload", response_model=UploadResponse)
def s3_upload(
    payload: UploadRequest,
    user_id: Optional[int] = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
    storage: StorageClient = Depends(get_storage_client),
):
    return issue_upload_credentials(
        payload, user_id=user_id, settings=settings, storage=storage
    )


@router.get("/posts", response_model=PostsPage)
def list_posts(
    limit: int = Query(50, ge=1, le=100),
    page: int = Query(1, ge=1),
    cursor: int | None = Query(None),
    query: str | None = Query(None),
    username: str | None = Query(None),
    excluded_tag_ids: str | None = Query(None),
    excluded_user_ids: str | None = Query(None),
    excluded_image_ids: str | None = Query(None),
    period: MetricTimeframe = Query(MetricTimeframe.ALL_TIME),
    sort: PostSort = Query(PostSort.NEWEST),
    browsing_mode: BrowsingMode = Query(BrowsingMode.ALL),
    posts: PostRepository = Depends(get_post_repository),
):
    """
    Feed of posts with their lead image. Pass `next_cursor` back as `cursor`
    to continue; a missing `next_cursor` means the feed is exhausted.
    """
    data = PostsQueryInput(
        limit=limit,
        page=page,
        cursor=cursor,
        query=query,
        username=username,
        excluded_tag_ids=_parse_ids(excluded_tag_ids, "excluded_tag_ids"),
        excluded_user_ids=_parse_ids(excluded_user_ids, "excluded_user_ids"),
        excluded_image_ids=_parse_ids(excluded_image_ids, "excluded_image_ids"),
        period=period,
        sort=sort,
        browsing_mode=browsing_mode,
    )
    return posts.get_posts_infinite(data)


@router.post("/posts", response_model=PostEditDetail, status_code=201)
def create_post(
    payload: PostCreateInput,
    user_id: Optional[int] = Depends(get_current_user_id),
    posts: PostRepository = Depends(get_post_repository),
):
    return posts.create_post(_require_user(user_id), payload)


@router.get("/posts/{post_id}", response_model=PostDetail)
def get_post(post_id: int, posts: PostRepository = Depends(get_post_repository)):
    return posts.get_post_detail(post_id)


@router.get("/posts/{post_id}/edit", response_model=PostEditDetail)
def get_post_for_edit(
    post_id: int, posts: PostRepository = Depends(get_post_repository)
):
    return posts.get_post_edit_detail(post_id)


@router.patch("/posts/{post_id}", response_model=PostDetail)
def update_post(
    post_id: int,
    payload: PostUpdateInput,
    posts: PostRepository = Depends(get_post_repository),
):
    posts.update_post(post_id, payload)
    return posts.get_post_detail(post_id)


@router.delete("/posts/{post_id}", status_code=204)
def delete_post(post_id: int, posts: PostRepository = Depends(get_post_repository)):
    posts.delete_post(post_id)
    return Response(status_code=204)


@router.get("/posts/{post_id}/resources", response_model=list[PostResource])
def get_post_resources(
    post_id: int, posts: PostRepository = Depends(get_post_repository)
):
    return posts.get_post_resources(post_id)


@router.post("/posts/{post_id}/tags", response_model=SimpleTag)
def add_post_tag(
    post_id: int,
    payload: AddPostTagInput,
    tags: TagRepository = Depends(get_tag_repository),
):
    return tags.add_post_tag(post_id, payload)


@router.delete("/posts/{post_id}/tags/{tag_id}", status_code=204)
def remove_post_tag(
    post_id: int,
    tag_id: int,
    tags: TagRepository = Depends(get_tag_repository),
):
    tags.remove_post_tag(post_id, tag_id)
    return Response(status_code=204)


@router.post("/posts/{post_id}/images", response_model=PostImage, status_code=201)
def add_post_image(
    post_id: int,
    payload: AddPostImageInput,
    user_id: Optional[int] = Depends(get_current_user_id),
    posts: PostRepository = Depends(get_post_repository),
):
    return posts.add_post_image(_require_user(user_id), post_id, payload)


@router.post("/posts/{post_id}/images/reorder", status_code=204)
def reorder_post_images(
    post_id: int,
    payload: ReorderPostImagesInput,
    posts: PostRepository = Depends(get_post_repository),
):
    posts.reorder_post_images(post_id, payload)
    return Response(status_code=204)


@router.patch("/post-images/{image_id}", response_model=PostImage)
def update_post_image(
    image_id: int,
    payload: UpdatePostImageInput,
    posts: PostRepository = Depends(get_post_repository),
):
    return posts.update_post_image(image_id, payload)


@router.get("/post-tags", response_model=list[PostTagResult])
def get_post_tags(
    query: str | None = Query(None),
    limit: int = Query(10, ge=1, le=100),
    tags: TagRepository = Depends(get_tag_repository),
):
    return tags.get_post_tags(GetPostTagsInput(query=query, limit=limit))
