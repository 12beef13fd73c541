"""
Post operations: the paginated feed, post CRUD and the post's images.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from postboard.constants import BrowsingMode, MetricTimeframe, PostSort
from postboard.db import Database, escape_like
from postboard.errors import NotFoundError
from postboard.models import (
    ImageResourceRow,
    ImageRow,
    ModelRow,
    ModelVersionRow,
    PostRankRow,
    PostRow,
    TagsOnImageRow,
    TagsOnPostRow,
    UserRow,
)
from postboard.resources import get_image_generation_process, resolve_detected_resources
from postboard.schemas import (
    AddPostImageInput,
    FeedImage,
    FeedPost,
    ImageResourceSummary,
    PostCreateInput,
    PostDetail,
    PostEditDetail,
    PostImage,
    PostResource,
    PostsPage,
    PostsQueryInput,
    PostUpdateInput,
    ReorderPostImagesInput,
    SimpleTag,
    UpdatePostImageInput,
    UserSummary,
)

logger = logging.getLogger(__name__)

RANK_PREFIXES = {
    PostSort.MOST_REACTIONS: "reaction_count",
    PostSort.MOST_COMMENTS: "comment_count",
}
PERIOD_SUFFIXES = {
    MetricTimeframe.DAY: "day",
    MetricTimeframe.WEEK: "week",
    MetricTimeframe.MONTH: "month",
    MetricTimeframe.YEAR: "year",
    MetricTimeframe.ALL_TIME: "all_time",
}
# Posts without a rank sort after every ranked post.
UNRANKED = 2**31 - 1


def _rank_expression(sort: PostSort, period: MetricTimeframe):
    prefix = RANK_PREFIXES.get(sort)
    if prefix is None:
        return None
    column = getattr(PostRankRow, f"{prefix}_{PERIOD_SUFFIXES[period]}_rank")
    return func.coalesce(column, UNRANKED)


def _after(rank, key: tuple[Optional[int], int], inclusive: bool):
    """Keyset predicate for rows at or after `key` in (rank asc, id desc) order."""
    rank_value, post_id = key
    id_condition = PostRow.id <= post_id if inclusive else PostRow.id < post_id
    if rank is None:
        return id_condition
    return or_(rank > rank_value, and_(rank == rank_value, id_condition))


def _flatten_tags(links) -> list[SimpleTag]:
    return [SimpleTag.model_validate(link.tag) for link in links]


def _to_post_image(image: ImageRow) -> PostImage:
    return PostImage(
        **FeedImage.model_validate(image).model_dump(),
        post_id=image.post_id,
        created_at=image.created_at,
        tags=_flatten_tags(image.tags),
        resources=[ImageResourceSummary.model_validate(r) for r in image.resources],
    )


def _to_edit_detail(post: PostRow) -> PostEditDetail:
    return PostEditDetail(
        id=post.id,
        nsfw=post.nsfw,
        title=post.title,
        detail=post.detail,
        model_version_id=post.model_version_id,
        user_id=post.user_id,
        published_at=post.published_at,
        tags=_flatten_tags(post.tags),
        images=[_to_post_image(image) for image in post.images],
    )


class PostRepository:
    def __init__(self, db: Database):
        self.db = db

    def get_posts_infinite(self, data: PostsQueryInput) -> PostsPage:
        """
        Return one feed page of posts, each with its lead image.

        A post is a candidate when it passes the post filters; it is kept only
        if at least one of its images passes the image filters, and the
        qualifying image with the lowest display index becomes its lead
        image. Candidates are read in batches of `limit + 1` until that many
        posts with images are found or the feed runs out. The extra post is
        not returned: its id becomes `next_cursor`, and a request with that
        cursor starts at that post.
        """
        post_filters = []
        image_filters = []
        if data.query:
            post_filters.append(
                PostRow.title.ilike(f"%{escape_like(data.query)}%", escape="\\")
            )
        if data.username:
            post_filters.append(PostRow.user.has(UserRow.username == data.username))
        if data.excluded_tag_ids:
            post_filters.append(
                ~PostRow.tags.any(TagsOnPostRow.tag_id.in_(data.excluded_tag_ids))
            )
            image_filters.append(
                ~ImageRow.tags.any(TagsOnImageRow.tag_id.in_(data.excluded_tag_ids))
            )
        if data.excluded_user_ids:
            post_filters.append(PostRow.user_id.not_in(data.excluded_user_ids))
        if data.excluded_image_ids:
            image_filters.append(ImageRow.id.not_in(data.excluded_image_ids))
        if data.browsing_mode != BrowsingMode.ALL:
            nsfw = data.browsing_mode == BrowsingMode.NSFW
            post_filters.append(PostRow.nsfw == nsfw)
            image_filters.append(ImageRow.nsfw == nsfw)

        rank = _rank_expression(data.sort, data.period)
        if rank is None:
            base = select(PostRow)
            order_by = [PostRow.id.desc()]
        else:
            base = select(PostRow, rank.label("sort_rank")).outerjoin(
                PostRankRow, PostRankRow.post_id == PostRow.id
            )
            order_by = [rank.asc(), PostRow.id.desc()]

        needed = data.limit + 1
        with self.db.Session() as session:
            key = None
            if data.cursor is not None:
                key = self._cursor_key(session, rank, data.cursor)
                if key is None:
                    return PostsPage(items=[], next_cursor=None)

            found: list[tuple[PostRow, ImageRow]] = []
            inclusive = True
            offset = (data.page - 1) * data.limit
            while len(found) < needed:
                stmt = base.where(*post_filters)
                if key is not None:
                    stmt = stmt.where(_after(rank, key, inclusive))
                stmt = stmt.order_by(*order_by).offset(offset).limit(needed)
                rows = session.execute(stmt).all()
                if not rows:
                    break

                lead_images = self._lead_images(
                    session, [row[0].id for row in rows], image_filters
                )
                for row in rows:
                    image = lead_images.get(row[0].id)
                    if image is not None:
                        found.append((row[0], image))
                        if len(found) == needed:
                            break

                if len(rows) < needed:
                    break
                last = rows[-1]
                key = (last.sort_rank if rank is not None else None, last[0].id)
                inclusive = False
                offset = 0

            next_cursor = None
            if len(found) > data.limit:
                next_cursor = found.pop()[0].id

            return PostsPage(
                items=[
                    FeedPost(
                        id=post.id,
                        nsfw=post.nsfw,
                        title=post.title,
                        user=UserSummary.model_validate(post.user),
                        image=FeedImage.model_validate(image),
                    )
                    for post, image in found
                ],
                next_cursor=next_cursor,
            )

    def _cursor_key(
        self, session: Session, rank, cursor: int
    ) -> Optional[tuple[Optional[int], int]]:
        if rank is None:
            return None, cursor
        cursor_rank = session.execute(
            select(rank)
            .select_from(PostRow)
            .outerjoin(PostRankRow, PostRankRow.post_id == PostRow.id)
            .where(PostRow.id == cursor)
        ).scalar_one_or_none()
        if cursor_rank is None:
            return None
        return cursor_rank, cursor

    def _lead_images(
        self, session: Session, post_ids: list[int], image_filters: list
    ) -> dict[int, ImageRow]:
        position = (
            func.row_number()
            .over(
                partition_by=ImageRow.post_id,
                order_by=[ImageRow.index.asc().nulls_last(), ImageRow.id.asc()],
            )
            .label("position")
        )
        ranked = (
            select(ImageRow.id.label("image_id"), position)
            .where(ImageRow.post_id.in_(post_ids), *image_filters)
            .subquery()
        )
        stmt = (
            select(ImageRow)
            .join(ranked, ranked.c.image_id == ImageRow.id)
            .where(ranked.c.position == 1)
        )
        return {image.post_id: image for image in session.execute(stmt).scalars()}

    def get_post_detail(self, post_id: int) -> PostDetail:
        with self.db.Session() as session:
            post = session.get(PostRow, post_id)
            if post is None:
                raise NotFoundError(f"No post with id {post_id}")
            return PostDetail(
                id=post.id,
                nsfw=post.nsfw,
                title=post.title,
                detail=post.detail,
                model_version_id=post.model_version_id,
                user=UserSummary.model_validate(post.user),
                published_at=post.published_at,
                tags=_flatten_tags(post.tags),
            )

    def get_post_edit_detail(self, post_id: int) -> PostEditDetail:
        with self.db.Session() as session:
            post = session.get(PostRow, post_id)
            if post is None:
                raise NotFoundError(f"No post with id {post_id}")
            return _to_edit_detail(post)

    def create_post(self, user_id: int, data: PostCreateInput) -> PostEditDetail:
        with self.db.Session() as session, session.begin():
            post = PostRow(user_id=user_id, model_version_id=data.model_version_id)
            session.add(post)
            session.flush()
            result = _to_edit_detail(post)
        logger.info("User %s created post %s", user_id, result.id)
        return result

    def update_post(self, post_id: int, data: PostUpdateInput) -> None:
        """Write the fields present in `data`; empty title or detail become null."""
        changes = data.model_dump(exclude_unset=True)
        for field in ("title", "detail"):
            if field in changes and not changes[field]:
                changes[field] = None
        if "nsfw" in changes and changes["nsfw"] is None:
            del changes["nsfw"]

        with self.db.Session() as session, session.begin():
            post = session.get(PostRow, post_id)
            if post is None:
                raise NotFoundError(f"No post with id {post_id}")
            for field, value in changes.items():
                setattr(post, field, value)

    def delete_post(self, post_id: int) -> None:
        with self.db.Session() as session, session.begin():
            post = session.get(PostRow, post_id)
            if post is None:
                raise NotFoundError(f"No post with id {post_id}")
            session.delete(post)
        logger.info("Deleted post %s", post_id)

    def add_post_image(
        self, user_id: int, post_id: int, data: AddPostImageInput
    ) -> PostImage:
        with self.db.Session() as session, session.begin():
            if session.get(PostRow, post_id) is None:
                raise NotFoundError(f"No post with id {post_id}")
            resources = resolve_detected_resources(
                session, data.meta, data.model_version_id
            )
            index = data.index
            if index is None:
                index = session.scalar(
                    select(func.coalesce(func.max(ImageRow.index), -1) + 1).where(
                        ImageRow.post_id == post_id
                    )
                )
            image = ImageRow(
                post_id=post_id,
                user_id=user_id,
                url=data.url,
                name=data.name,
                width=data.width,
                height=data.height,
                hash=data.hash,
                index=index,
                nsfw=data.nsfw,
                meta=data.meta,
                generation_process=get_image_generation_process(data.meta),
                resources=[
                    ImageResourceRow(detected=True, **resource) for resource in resources
                ],
            )
            session.add(image)
            session.flush()
            return _to_post_image(image)

    def update_post_image(self, image_id: int, data: UpdatePostImageInput) -> PostImage:
        changes = data.model_dump(exclude_unset=True)
        if "nsfw" in changes and changes["nsfw"] is None:
            del changes["nsfw"]

        with self.db.Session() as session, session.begin():
            image = session.get(ImageRow, image_id)
            if image is None:
                raise NotFoundError(f"No image with id {image_id}")
            for field, value in changes.items():
                setattr(image, field, value)
            if "meta" in changes:
                image.generation_process = get_image_generation_process(changes["meta"])
            session.flush()
            return _to_post_image(image)

    def reorder_post_images(self, post_id: int, data: ReorderPostImagesInput) -> None:
        """Set each image's index to its position in `image_ids`, all or nothing."""
        with self.db.Session() as session, session.begin():
            images = {
                image.id: image
                for image in session.execute(
                    select(ImageRow).where(
                        ImageRow.post_id == post_id, ImageRow.id.in_(data.image_ids)
                    )
                ).scalars()
            }
            missing = [image_id for image_id in data.image_ids if image_id not in images]
            if missing:
                raise NotFoundError(f"Post {post_id} has no images with ids {missing}")
            for index, image_id in enumerate(data.image_ids):
                images[image_id].index = index
        logger.info("Reordered %d images of post %s", len(data.image_ids), post_id)

    def get_post_resources(self, post_id: int) -> list[PostResource]:
        stmt = (
            select(
                ImageRow.post_id,
                ImageResourceRow.name,
                ImageResourceRow.model_version_id,
                ModelVersionRow.name.label("model_version_name"),
                ModelRow.id.label("model_id"),
                ModelRow.name.label("model_name"),
            )
            .join(ImageResourceRow, ImageResourceRow.image_id == ImageRow.id)
            .outerjoin(
                ModelVersionRow, ModelVersionRow.id == ImageResourceRow.model_version_id
            )
            .outerjoin(ModelRow, ModelRow.id == ModelVersionRow.model_id)
            .where(ImageRow.post_id == post_id)
            .distinct()
            .order_by(ModelRow.name.asc().nulls_last(), ImageResourceRow.name.asc())
        )
        with self.db.Session() as session:
            return [
                PostResource(
                    post_id=row.post_id,
                    name=row.name,
                    model_version_id=row.model_version_id,
                    model_version_name=row.model_version_name,
                    model_id=row.model_id,
                    model_name=row.model_name,
                )
                for row in session.execute(stmt)
            ]
