"""
Markdown-like slide outlines -> PresentationContent.

    ### Slide 1: Introduction
    **Title:** Elevating Culinary Experiences
    **Description:** Introducing the next generation of air fryers...
    **Suggested Image Background:** Use Image 1: "air_fryer.jpg" to convey the premium aspect.
    **Layout:** product-showcase
"""
import os
import re

from pptgen.errors import EmptyPresentationError
from pptgen.models import ImageRef, LayoutVariant, PresentationContent, SlideContent
from pptgen.utils import _log

DEFAULT_TITLE = "AI Generated Presentation"
DEFAULT_AUTHOR = "AI Assistant"
FLEXIBLE_SLIDE_TITLE = "Generated Content"
DEFAULT_IMAGE_DESCRIPTION = "Background image for slide"

SLIDE_BLOCK = re.compile(r"###\s*Slide\s*\d+\s*:.*?(?=###\s*Slide\s*\d+\s*:|\Z)", re.IGNORECASE | re.DOTALL)
TITLE_LINE = re.compile(r"\*\*Title:\*\*\s*(.+?)\s*$", re.MULTILINE)
DESCRIPTION = re.compile(r"\*\*Description:\*\*\s*(.+?)(?=\n\s*\*\*|\n\s*\[layout:|\Z)", re.DOTALL)
IMAGE_LINE = re.compile(r"\*\*Suggested Image Background:\*\*\s*(.+?)\s*$", re.MULTILINE)
LAYOUT_LINE = re.compile(r"\*\*Layout:\*\*\s*(.+?)\s*$", re.MULTILINE)
LAYOUT_TAG = re.compile(r"\[layout:\s*([^\]]+)\]", re.IGNORECASE)
IMAGE_FILE = re.compile(r"[\"']?([^\"'\s:]+\.(?:jpg|jpeg|png|gif|bmp|tiff))[\"']?", re.IGNORECASE)
IMAGE_PURPOSE = re.compile(r"\s+to\s+(.+)$", re.IGNORECASE)


def split_slide_blocks(text):
    return [match.group(0).strip() for match in SLIDE_BLOCK.finditer(text or "")]


def image_description(image_text):
    """The purpose after ' to ' in an image suggestion, else a generic description."""
    match = IMAGE_PURPOSE.search(image_text)
    if match:
        return match.group(1).strip().rstrip(".")
    return DEFAULT_IMAGE_DESCRIPTION


def parse_image(image_text, image_base_path=""):
    match = IMAGE_FILE.search(image_text)
    if not match:
        return None
    base = image_base_path or os.path.join(os.getcwd(), "Images")
    description = image_description(image_text)
    return ImageRef(file_path=os.path.join(base, match.group(1)), alt_text=description, caption=description)


def infer_layout(slide: SlideContent) -> LayoutVariant:
    if slide.background_image is not None:
        return LayoutVariant.IMAGE_FOCUSED
    if len(slide.images) > 1:
        return LayoutVariant.IMAGE_GRID
    if len(slide.images) == 1:
        return LayoutVariant.SINGLE_IMAGE_WITH_CAPTION
    return LayoutVariant.TITLE_AND_CONTENT


def layout_override(block):
    """Explicit `**Layout:**` line or `[layout: ...]` tag, if the block has one."""
    for pattern in (LAYOUT_LINE, LAYOUT_TAG):
        match = pattern.search(block)
        if match:
            return LayoutVariant.parse(match.group(1))
    return None


def parse_slide_block(block, image_base_path=""):
    slide = SlideContent()
    match = TITLE_LINE.search(block)
    if match:
        slide.title = match.group(1).strip()
    match = DESCRIPTION.search(block)
    if match:
        slide.description = match.group(1).strip()
    match = IMAGE_LINE.search(block)
    if match:
        image = parse_image(match.group(1).strip(), image_base_path)
        if image is not None:
            slide.set_background_image(image)
    slide.layout = layout_override(block) or infer_layout(slide)
    return slide


def parse_slide_text(text, presentation_title=DEFAULT_TITLE, author=DEFAULT_AUTHOR, image_base_path=""):
    content = PresentationContent(title=presentation_title, author=author)
    for block in split_slide_blocks(text):
        content.slides.append(parse_slide_block(block, image_base_path))
    _log(f"Parsed {len(content.slides)} slides from text")
    return content


def parse_flexible(text, presentation_title=DEFAULT_TITLE, author=DEFAULT_AUTHOR, image_base_path=""):
    """Slide outlines are parsed as such; any other text becomes a single slide."""
    if not (text or "").strip():
        raise EmptyPresentationError("No slide content provided")
    if split_slide_blocks(text):
        return parse_slide_text(text, presentation_title, author, image_base_path)
    slide = SlideContent(title=FLEXIBLE_SLIDE_TITLE, description=text.strip())
    return PresentationContent(title=presentation_title, author=author, slides=[slide])
