"""
SQLAlchemy rows for users, models, posts, images, tags and their stats.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

from postboard.constants import TagType

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRow(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String, unique=True, nullable=True)
    image = Column(String, nullable=True)


class ModelRow(Base):
    __tablename__ = "models"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)

    versions = relationship("ModelVersionRow", back_populates="model")


class ModelVersionRow(Base):
    __tablename__ = "model_versions"

    id = Column(Integer, primary_key=True)
    model_id = Column(Integer, ForeignKey("models.id"), nullable=False, index=True)
    name = Column(String, nullable=False)

    model = relationship("ModelRow", back_populates="versions")
    files = relationship("ModelFileRow", back_populates="model_version")


class ModelFileRow(Base):
    __tablename__ = "model_files"

    id = Column(Integer, primary_key=True)
    model_version_id = Column(
        Integer, ForeignKey("model_versions.id"), nullable=False, index=True
    )
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)

    model_version = relationship("ModelVersionRow", back_populates="files")
    hashes = relationship("ModelFileHashRow", back_populates="file")


class ModelFileHashRow(Base):
    __tablename__ = "model_file_hashes"

    id = Column(Integer, primary_key=True)
    file_id = Column(Integer, ForeignKey("model_files.id"), nullable=False, index=True)
    type = Column(String, nullable=False, default="SHA256")
    hash = Column(String, nullable=False, index=True)

    file = relationship("ModelFileRow", back_populates="hashes")


class PostRow(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=True)
    detail = Column(Text, nullable=True)
    nsfw = Column(Boolean, nullable=False, default=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    model_version_id = Column(
        Integer, ForeignKey("model_versions.id"), nullable=True, index=True
    )
    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    user = relationship("UserRow")
    images = relationship(
        "ImageRow",
        back_populates="post",
        order_by=lambda: [ImageRow.index.asc().nulls_last(), ImageRow.id],
        cascade="all, delete-orphan",
    )
    tags = relationship(
        "TagsOnPostRow", back_populates="post", cascade="all, delete-orphan"
    )
    rank = relationship(
        "PostRankRow", uselist=False, cascade="all, delete-orphan"
    )


class PostRankRow(Base):
    """Precomputed feed ranks; 1 is the top of the period."""

    __tablename__ = "post_ranks"

    post_id = Column(Integer, ForeignKey("posts.id"), primary_key=True)
    reaction_count_day_rank = Column(Integer, nullable=True)
    reaction_count_week_rank = Column(Integer, nullable=True)
    reaction_count_month_rank = Column(Integer, nullable=True)
    reaction_count_year_rank = Column(Integer, nullable=True)
    reaction_count_all_time_rank = Column(Integer, nullable=True)
    comment_count_day_rank = Column(Integer, nullable=True)
    comment_count_week_rank = Column(Integer, nullable=True)
    comment_count_month_rank = Column(Integer, nullable=True)
    comment_count_year_rank = Column(Integer, nullable=True)
    comment_count_all_time_rank = Column(Integer, nullable=True)


class ImageRow(Base):
    __tablename__ = "images"

    id = Column(Integer, primary_key=True)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    url = Column(String, nullable=False)
    name = Column(String, nullable=True)
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)
    hash = Column(String, nullable=True)
    index = Column(Integer, nullable=True)
    nsfw = Column(Boolean, nullable=False, default=False)
    meta = Column(JSON, nullable=True)
    generation_process = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    post = relationship("PostRow", back_populates="images")
    resources = relationship(
        "ImageResourceRow",
        back_populates="image",
        order_by="ImageResourceRow.id",
        cascade="all, delete-orphan",
    )
    tags = relationship(
        "TagsOnImageRow", back_populates="image", cascade="all, delete-orphan"
    )


class ImageResourceRow(Base):
    __tablename__ = "image_resources"

    id = Column(Integer, primary_key=True)
    image_id = Column(Integer, ForeignKey("images.id"), nullable=False, index=True)
    model_version_id = Column(
        Integer, ForeignKey("model_versions.id"), nullable=True, index=True
    )
    name = Column(String, nullable=True)
    detected = Column(Boolean, nullable=False, default=False)

    image = relationship("ImageRow", back_populates="resources")
    model_version = relationship("ModelVersionRow")


class TagRow(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    is_category = Column(Boolean, nullable=False, default=False)
    type = Column(String, nullable=False, default=TagType.USER_GENERATED.value)
    target = Column(JSON, nullable=False, default=list)

    stat = relationship("TagStatRow", uselist=False)


class TagStatRow(Base):
    __tablename__ = "tag_stats"

    tag_id = Column(Integer, ForeignKey("tags.id"), primary_key=True)
    post_count_day = Column(Integer, nullable=False, default=0)
    post_count_all_time = Column(Integer, nullable=False, default=0)


class TagsOnPostRow(Base):
    __tablename__ = "tags_on_posts"

    tag_id = Column(Integer, ForeignKey("tags.id"), primary_key=True)
    post_id = Column(Integer, ForeignKey("posts.id"), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    tag = relationship("TagRow")
    post = relationship("PostRow", back_populates="tags")


class TagsOnImageRow(Base):
    __tablename__ = "tags_on_images"

    tag_id = Column(Integer, ForeignKey("tags.id"), primary_key=True)
    image_id = Column(Integer, ForeignKey("images.id"), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    tag = relationship("TagRow")
    image = relationship("ImageRow", back_populates="tags")
