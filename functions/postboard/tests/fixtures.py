"""
Row builders shared by the repository and API tests.
"""

from __future__ import annotations

from postboard.config import Settings
from postboard.constants import TagType
from postboard.db import IN_MEMORY_URL, Database
from postboard.models import (
    ImageRow,
    ModelFileHashRow,
    ModelFileRow,
    ModelRow,
    ModelVersionRow,
    PostRankRow,
    PostRow,
    TagRow,
    TagStatRow,
    TagsOnImageRow,
    TagsOnPostRow,
    UserRow,
)


def make_database() -> Database:
    return Database(IN_MEMORY_URL)


def upload_settings(**overrides) -> Settings:
    values = dict(
        s3_upload_key="key",
        s3_upload_secret="secret",
        s3_upload_region="us-east-1",
        s3_upload_endpoint="https://s3.example.test",
        s3_upload_bucket="uploads",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


class Seeder:
    def __init__(self, db: Database):
        self.db = db

    def _add(self, row):
        with self.db.Session() as session:
            session.add(row)
            session.commit()
            return row

    def user(self, user_id: int, username: str | None = None) -> int:
        return self._add(UserRow(id=user_id, username=username)).id

    def post(
        self,
        post_id: int,
        user_id: int = 1,
        title: str | None = None,
        nsfw: bool = False,
    ) -> int:
        return self._add(
            PostRow(id=post_id, user_id=user_id, title=title, nsfw=nsfw)
        ).id

    def image(
        self,
        post_id: int,
        image_id: int | None = None,
        index: int | None = 0,
        nsfw: bool = False,
        user_id: int = 1,
    ) -> int:
        return self._add(
            ImageRow(
                id=image_id,
                post_id=post_id,
                user_id=user_id,
                url=f"https://images.example.test/{post_id}/{index}.png",
                index=index,
                nsfw=nsfw,
            )
        ).id

    def tag(
        self,
        name: str,
        is_category: bool = False,
        target: list[str] | None = None,
        post_count_day: int | None = None,
        post_count_all_time: int | None = None,
    ) -> int:
        tag = self._add(
            TagRow(
                name=name,
                is_category=is_category,
                type=TagType.SYSTEM.value,
                target=target or [],
            )
        )
        if post_count_day is not None or post_count_all_time is not None:
            self._add(
                TagStatRow(
                    tag_id=tag.id,
                    post_count_day=post_count_day or 0,
                    post_count_all_time=post_count_all_time or 0,
                )
            )
        return tag.id

    def tag_post(self, tag_id: int, post_id: int) -> None:
        self._add(TagsOnPostRow(tag_id=tag_id, post_id=post_id))

    def tag_image(self, tag_id: int, image_id: int) -> None:
        self._add(TagsOnImageRow(tag_id=tag_id, image_id=image_id))

    def rank(self, post_id: int, **ranks) -> None:
        self._add(PostRankRow(post_id=post_id, **ranks))

    def model_version(self, model_id: int, version_id: int, model_name: str) -> int:
        with self.db.Session() as session:
            if session.get(ModelRow, model_id) is None:
                session.add(ModelRow(id=model_id, name=model_name))
            session.add(
                ModelVersionRow(id=version_id, model_id=model_id, name=f"v{version_id}")
            )
            session.commit()
        return version_id

    def model_file(self, version_id: int, file_type: str, file_hash: str) -> int:
        file = self._add(
            ModelFileRow(
                model_version_id=version_id, name=f"{file_type}.safetensors", type=file_type
            )
        )
        self._add(ModelFileHashRow(file_id=file.id, type="SHA256", hash=file_hash))
        return file.id
