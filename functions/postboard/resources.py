"""
Detection of model resources from image generation metadata.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from postboard.constants import ImageGenerationProcess, ModelFileType
from postboard.models import ModelFileHashRow, ModelFileRow

logger = logging.getLogger(__name__)

DETECTABLE_FILE_TYPES = (
    ModelFileType.MODEL,
    ModelFileType.PRUNED_MODEL,
    ModelFileType.NEGATIVE,
)


def get_image_generation_process(meta: Optional[dict]) -> Optional[str]:
    """Classify how an image was generated from its embedded parameters."""
    if not meta:
        return None
    denoise_strength = meta.get("Denoise strength", meta.get("Denoising strength"))
    hires_fixed = meta.get("First pass strength") is not None or (
        meta.get("Hires upscale", meta.get("Hires upscaler")) is not None
    )
    if meta.get("Mask blur") is not None:
        return ImageGenerationProcess.INPAINTING.value
    if denoise_strength is not None and not hires_fixed:
        return ImageGenerationProcess.IMG2IMG.value
    if denoise_strength is not None and hires_fixed:
        return ImageGenerationProcess.TXT2IMG_HIRES.value
    return ImageGenerationProcess.TXT2IMG.value


def _meta_hashes(meta: Optional[dict]) -> list[tuple[str, str]]:
    hashes = (meta or {}).get("hashes")
    if not isinstance(hashes, dict):
        return []
    return [(str(name), str(value)) for name, value in hashes.items() if value]


def _unique(resources: list[dict]) -> list[dict]:
    unique: list[dict] = []
    for resource in resources:
        if resource not in unique:
            unique.append(resource)
    return unique


def resolve_detected_resources(
    session: Session,
    meta: Optional[dict],
    model_version_id: Optional[int] = None,
) -> list[dict]:
    """
    Map the `hashes` entry of generation metadata onto known model versions.

    Hashes that match a model, pruned model or negative embedding file become
    `{"model_version_id": ...}`; the rest keep their name as `{"name": ...}`.
    An explicitly chosen model version goes first. Duplicates are dropped,
    keeping the first occurrence.
    """
    meta_resources = _meta_hashes(meta)

    known: dict[str, int] = {}
    if meta_resources:
        stmt = (
            select(ModelFileHashRow.hash, ModelFileRow.model_version_id)
            .join(ModelFileRow, ModelFileHashRow.file_id == ModelFileRow.id)
            .where(
                ModelFileRow.type.in_([t.value for t in DETECTABLE_FILE_TYPES]),
                func.lower(ModelFileHashRow.hash).in_(
                    [value.lower() for _, value in meta_resources]
                ),
            )
        )
        for file_hash, version_id in session.execute(stmt):
            known.setdefault(file_hash.lower(), version_id)

    resources: list[dict] = []
    for name, value in meta_resources:
        version_id = known.get(value.lower())
        if version_id is not None:
            resources.append({"model_version_id": version_id})
        else:
            resources.append({"name": name})
    if model_version_id:
        resources.insert(0, {"model_version_id": model_version_id})

    unique = _unique(resources)
    logger.debug(
        "Resolved %d of %d metadata hashes to model versions",
        len(known),
        len(meta_resources),
    )
    return unique
