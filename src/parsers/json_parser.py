"""
JSON slide documents -> PresentationContent.

    {"slides": [{"title": ..., "description": ..., "suggested_image": ..., "layout": ...}],
     "images": [{"id": ..., "data": <base64 or data: URL>}]}

Keys are matched case-insensitively.
"""
import base64
import binascii
import json
import os
import re
import tempfile
import uuid
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from pptgen.errors import ContentParseError, EmptyPresentationError
from pptgen.models import ImageRef, LayoutVariant, PresentationContent, SlideContent
from pptgen.utils import _log

DEFAULT_TITLE = "JSON Generated Presentation"
DEFAULT_AUTHOR = "AI Assistant"
DEFAULT_LAYOUT = LayoutVariant.IMAGE_FOCUSED

IMAGE_EXTENSIONS = r"png|jpg|jpeg|gif|bmp"
FILE_NAME_PATTERNS = (
    rf'Use Image \d+:\s*"?([^"]+\.(?:{IMAGE_EXTENSIONS}))"?',
    rf'"([^"]+\.(?:{IMAGE_EXTENSIONS}))"',
    rf'([^"]+\.(?:{IMAGE_EXTENSIONS}))',
)
IMAGE_ID_PATTERNS = (
    r'Use Image \d+:\s*"?([^"]+)"?',
    r'"([^"]+)"',
    r'([^"]+)',
)
MIME_EXTENSIONS = {
    "jpeg": ".jpg",
    "jpg": ".jpg",
    "png": ".png",
    "gif": ".gif",
    "bmp": ".bmp",
    "webp": ".webp",
    "svg+xml": ".svg",
}


class JsonSlide(BaseModel):
    title: str = ""
    description: str = ""
    suggested_image: Optional[str] = None
    layout: str = ""


class JsonImage(BaseModel):
    id: str = ""
    data: str = ""


class JsonSlideDocument(BaseModel):
    slides: List[JsonSlide] = Field(default_factory=list)
    images: List[JsonImage] = Field(default_factory=list)


def _lower_keys(value):
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_lower_keys(v) for v in value]
    return value


def load_document(json_text) -> JsonSlideDocument:
    """Parse and validate the JSON text (or an already decoded dict); raises ContentParseError or EmptyPresentationError."""
    if isinstance(json_text, dict):
        raw = json_text
    else:
        try:
            raw = json.loads(json_text)
        except (TypeError, json.JSONDecodeError) as e:
            raise ContentParseError(f"Invalid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise ContentParseError("JSON content must be an object with a 'slides' list")
    try:
        document = JsonSlideDocument.model_validate(_lower_keys(raw))
    except ValidationError as e:
        raise ContentParseError(f"Invalid slide document: {e}") from e
    if not document.slides:
        raise EmptyPresentationError("No slides found in JSON content")
    return document


def _first_match(patterns, text):
    for pattern in patterns:
        match = re.search(pattern, text, re.IGNORECASE)
        if match:
            return match.group(1).strip()
    return ""


def image_file_from_suggestion(suggested_image) -> str:
    """'Use Image 1: "photo.png"' -> 'photo.png'; empty when no image file name is present."""
    return _first_match(FILE_NAME_PATTERNS, suggested_image or "")


def image_id_from_suggestion(suggested_image) -> str:
    return _first_match(IMAGE_ID_PATTERNS, suggested_image or "")


def _slide_from(json_slide: JsonSlide, image_path=None) -> SlideContent:
    slide = SlideContent(
        title=json_slide.title,
        description=json_slide.description,
        layout=LayoutVariant.parse(json_slide.layout, DEFAULT_LAYOUT),
    )
    if image_path:
        slide.images.append(ImageRef(
            file_path=image_path, alt_text=json_slide.title, caption=json_slide.description))
    return slide


def parse_json(json_text, presentation_title=DEFAULT_TITLE, author=DEFAULT_AUTHOR, image_base_path=None):
    """Slides whose `suggested_image` names a file get that file from `image_base_path`."""
    if image_base_path is None:
        image_base_path = os.path.join(os.getcwd(), "Images")
    document = load_document(json_text)

    content = PresentationContent(title=presentation_title, author=author)
    for json_slide in document.slides:
        file_name = image_file_from_suggestion(json_slide.suggested_image)
        image_path = os.path.join(image_base_path, file_name) if file_name else None
        content.slides.append(_slide_from(json_slide, image_path))
    return content


def parse_json_file(json_path, presentation_title=DEFAULT_TITLE, author=DEFAULT_AUTHOR, image_base_path=None):
    if not os.path.isfile(json_path):
        raise ContentParseError(f"JSON file not found: {json_path}")
    with open(json_path, "r", encoding="utf-8") as f:
        return parse_json(f.read(), presentation_title, author, image_base_path)


def extension_for(image: JsonImage):
    """File extension from the data URL's MIME type, else from the id, else .png."""
    if image.data.startswith("data:image/") and "," in image.data:
        mime = image.data.split(",", 1)[0][len("data:image/"):]
        return MIME_EXTENSIONS.get(mime.split(";", 1)[0].lower(), ".png")
    return os.path.splitext(image.id)[1] or ".png"


def decode_images(images: List[JsonImage], target_dir):
    """Write each base64 image into `target_dir`; returns {image id: path}."""
    paths = {}
    for image in images:
        if not image.data.strip():
            continue
        payload = image.data.split(",", 1)[1] if image.data.startswith("data:image/") and "," in image.data else image.data
        try:
            blob = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ContentParseError(f"Failed to process image {image.id}: {e}") from e
        file_name = os.path.splitext(os.path.basename(image.id))[0] + extension_for(image)
        path = os.path.join(target_dir, file_name)
        with open(path, "wb") as f:
            f.write(blob)
        paths[image.id] = path
    return paths


def parse_json_with_embedded_images(json_text, presentation_title=DEFAULT_TITLE, author=DEFAULT_AUTHOR, temp_root=None):
    """
    Like parse_json, but images travel inside the document as base64 and
    `suggested_image` refers to an image id. Images are written to a fresh
    directory under `temp_root` (the system temp dir by default).
    """
    document = load_document(json_text)
    target_dir = os.path.join(temp_root or tempfile.gettempdir(), "pptgen", uuid.uuid4().hex)
    os.makedirs(target_dir, exist_ok=True)
    paths = decode_images(document.images, target_dir)
    _log(f"Decoded {len(paths)} embedded images into {target_dir}")

    content = PresentationContent(title=presentation_title, author=author)
    for json_slide in document.slides:
        image_id = image_id_from_suggestion(json_slide.suggested_image)
        content.slides.append(_slide_from(json_slide, paths.get(image_id)))
    return content
