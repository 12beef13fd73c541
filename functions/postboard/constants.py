"""
Enumerations shared by the models, schemas and repository operations.
"""

from __future__ import annotations

from enum import StrEnum


class TagType(StrEnum):
    USER_GENERATED = "UserGenerated"
    LABEL = "Label"
    SYSTEM = "System"


class TagTarget(StrEnum):
    MODEL = "Model"
    QUESTION = "Question"
    IMAGE = "Image"
    POST = "Post"


class ModelFileType(StrEnum):
    MODEL = "Model"
    PRUNED_MODEL = "Pruned Model"
    NEGATIVE = "Negative"
    TRAINING_DATA = "Training Data"
    VAE = "VAE"
    CONFIG = "Config"
    ARCHIVE = "Archive"


class ImageGenerationProcess(StrEnum):
    TXT2IMG = "txt2img"
    TXT2IMG_HIRES = "txt2imgHiRes"
    IMG2IMG = "img2img"
    INPAINTING = "inpainting"


class BrowsingMode(StrEnum):
    ALL = "All"
    SFW = "SFW"
    NSFW = "NSFW"


class PostSort(StrEnum):
    NEWEST = "Newest"
    MOST_REACTIONS = "Most Reactions"
    MOST_COMMENTS = "Most Comments"


class MetricTimeframe(StrEnum):
    DAY = "Day"
    WEEK = "Week"
    MONTH = "Month"
    YEAR = "Year"
    ALL_TIME = "AllTime"


class UploadType(StrEnum):
    IMAGE = "image"
    TRAINING_IMAGES = "training-images"
    MODEL = "model"
    AVATAR = "avatar"
    DEFAULT = "default"
