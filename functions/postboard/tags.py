"""
Tag operations for posts: search, upsert-and-attach, detach.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from postboard.constants import TagTarget, TagType
from postboard.db import Database, escape_like
from postboard.errors import NotFoundError
from postboard.models import PostRow, TagRow, TagStatRow, TagsOnPostRow
from postboard.schemas import AddPostTagInput, GetPostTagsInput, PostTagResult, SimpleTag

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2


def normalize_tag_name(name: str) -> str:
    return name.strip().lower()


class TagRepository:
    def __init__(self, db: Database):
        self.db = db

    def get_post_tags(self, data: GetPostTagsInput) -> list[PostTagResult]:
        """
        Trending category tags for short or missing queries, otherwise tags
        whose name starts with the query, shortest names first.
        """
        query = normalize_tag_name(data.query or "")
        show_trending = len(query) < MIN_SEARCH_LENGTH
        count_column = (
            TagStatRow.post_count_day if show_trending else TagStatRow.post_count_all_time
        )
        post_count = func.coalesce(count_column, 0)
        stmt = select(
            TagRow.id,
            TagRow.name,
            TagRow.is_category,
            post_count.label("post_count"),
        ).outerjoin(TagStatRow, TagStatRow.tag_id == TagRow.id)
        if show_trending:
            stmt = stmt.where(TagRow.is_category.is_(True)).order_by(
                post_count.desc(), TagRow.id
            )
        else:
            prefix = escape_like(query)
            stmt = stmt.where(TagRow.name.ilike(f"{prefix}%", escape="\\")).order_by(
                func.length(TagRow.name), post_count.desc(), TagRow.id
            )
        stmt = stmt.limit(data.limit)

        with self.db.Session() as session:
            return [
                PostTagResult(
                    id=row.id,
                    name=row.name,
                    is_category=row.is_category,
                    post_count=row.post_count,
                )
                for row in session.execute(stmt)
            ]

    def add_post_tag(self, post_id: int, data: AddPostTagInput) -> SimpleTag:
        name = normalize_tag_name(data.name)
        with self.db.Session() as session, session.begin():
            if session.get(PostRow, post_id) is None:
                raise NotFoundError(f"No post with id {post_id}")
            tag = self._find_tag(session, name)
            if tag is None:
                tag = self._create_tag(session, name)
            if TagTarget.POST.value not in (tag.target or []):
                tag.target = [*(tag.target or []), TagTarget.POST.value]
            if self._find_link(session, tag.id, post_id) is None:
                self._attach(session, tag.id, post_id)
            session.flush()
            return SimpleTag.model_validate(tag)

    def remove_post_tag(self, post_id: int, tag_id: int) -> None:
        with self.db.Session() as session, session.begin():
            link = session.get(TagsOnPostRow, (tag_id, post_id))
            if link is None:
                raise NotFoundError(f"Tag {tag_id} is not attached to post {post_id}")
            session.delete(link)

    def _find_tag(self, session: Session, name: str) -> TagRow | None:
        return session.execute(
            select(TagRow).where(TagRow.name == name)
        ).scalar_one_or_none()

    def _find_link(
        self, session: Session, tag_id: int, post_id: int
    ) -> TagsOnPostRow | None:
        return session.get(TagsOnPostRow, (tag_id, post_id))

    def _attach(self, session: Session, tag_id: int, post_id: int) -> None:
        try:
            with session.begin_nested():
                session.add(TagsOnPostRow(tag_id=tag_id, post_id=post_id))
        except IntegrityError:
            logger.warning(
                "Tag %s was attached to post %s concurrently", tag_id, post_id
            )

    def _create_tag(self, session: Session, name: str) -> TagRow:
        try:
            with session.begin_nested():
                tag = TagRow(
                    name=name,
                    type=TagType.USER_GENERATED.value,
                    target=[TagTarget.POST.value],
                )
                session.add(tag)
        except IntegrityError:
            logger.warning("Tag %r was created concurrently; reusing it", name)
            return session.execute(
                select(TagRow).where(TagRow.name == name)
            ).scalar_one()
        logger.info("Created tag %r (id=%s)", name, tag.id)
        return tag
