"""
In-memory content model consumed by both presentation pipelines.

The model carries no placement data: positions and sizes are computed at
render time by the layout policies, so the same content can be re-rendered
under a different layout.
"""
import os
import re
from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field

from .errors import EmptyPresentationError


class LayoutVariant(str, Enum):
    TITLE = "title"
    TITLE_AND_CONTENT = "title_and_content"
    IMAGE_FOCUSED = "image_focused"
    IMAGE_GRID = "image_grid"
    SINGLE_IMAGE_WITH_CAPTION = "single_image_with_caption"
    TWO_IMAGE_COMPARISON = "two_image_comparison"
    PRODUCT_SHOWCASE = "product_showcase"

    @classmethod
    def parse(cls, value, default=None):
        """
        Map a loosely spelled layout name to a variant.

        Accepts "TitleAndContent", "title_and_content", "title-and-content" and
        similar spellings. Unknown or empty values return `default`.
        """
        if isinstance(value, cls):
            return value
        if not value or not str(value).strip():
            return default
        key = re.sub(r"[\s_\-]", "", str(value)).lower()
        for variant in cls:
            if variant.value.replace("_", "") == key:
                return variant
        return default


class ImageRef(BaseModel):
    """One image to embed. Existence of `file_path` is checked lazily at embed time."""
    file_path: str
    alt_text: str = ""
    caption: str = ""

    def exists(self) -> bool:
        return bool(self.file_path) and os.path.isfile(self.file_path)


class SlideContent(BaseModel):
    title: str = ""
    # "synopsis" is the legacy name of the same field
    description: str = Field(default="", validation_alias=AliasChoices("description", "synopsis"))
    images: List[ImageRef] = Field(default_factory=list)
    bullet_points: List[str] = Field(default_factory=list)
    layout: LayoutVariant = LayoutVariant.TITLE_AND_CONTENT
    background_index: Optional[int] = None

    @property
    def synopsis(self) -> str:
        return self.description

    @property
    def body_text(self) -> str:
        return self.description.strip()

    @property
    def background_image(self) -> Optional[ImageRef]:
        if self.background_index is None:
            return None
        if 0 <= self.background_index < len(self.images):
            return self.images[self.background_index]
        return None

    def set_background_image(self, image: ImageRef) -> None:
        """Mark `image` as the background, appending it unless this exact instance is already listed."""
        for idx, existing in enumerate(self.images):
            if existing is image:
                self.background_index = idx
                return
        self.images.append(image)
        self.background_index = len(self.images) - 1

    @property
    def primary_image(self) -> Optional[ImageRef]:
        background = self.background_image
        if background is not None:
            return background
        return self.images[0] if self.images else None


class PresentationContent(BaseModel):
    title: str = ""
    author: str = ""
    slides: List[SlideContent] = Field(default_factory=list)

    def require_slides(self) -> None:
        if not self.slides:
            raise EmptyPresentationError()
