"""
Layout policies: where a slide's title, body and pictures go.

Every policy exposes `place(slide, canvas, request_id=None)` and returns the
slide's shapes as PlacedShape records in render order (title, body, then
pictures). Nothing here touches the package; `shapes.render_shapes` does that.
All coordinates are EMU.
"""
import math
from typing import List

from .geometry import Box, SlideSize, fit_within_bounds
from .images import read_dimensions
from .models import ImageRef, LayoutVariant, SlideContent
from .shapes import CAPTION_FONT_SIZE, TITLE_FONT_SIZE, PlacedShape
from .utils import _log, showcase_paragraphs

# Stacked text
TEXT_LEFT = 914400
TITLE_TOP = 685800
TEXT_WIDTH = 8229600
TITLE_HEIGHT = 1143000
TITLE_ADVANCE = 1200000
BODY_HEIGHT = 1371600
BODY_ADVANCE = 1500000
BOTTOM_MARGIN = 457200

# Standard image flow
SINGLE_IMAGE_MARGIN = 100000
GRID_COLUMNS = 2
GRID_INSET = 914400
CELL_PADDING = 228600

# Named layouts
FOCUSED_BOX = Box(1714500, 1524000, 5715000, 4286000)
GRID_ORIGIN = (914400, 2286000)
GRID_CELL = (3600000, 2700000)
GRID_PITCH = (4500000, 3200000)
GRID_MAX_IMAGES = 4
COMPARISON_BOXES = (
    Box(914400, 2286000, 3600000, 3600000),
    Box(4914400, 2286000, 3600000, 3600000),
)
CAPTION_IMAGE_BOX = Box(1828800, 1524000, 5715000, 4286000)
CAPTION_HEIGHT = 600000

# Product showcase
SHOWCASE_MARGIN = 457200
SHOWCASE_TEXT_SHARE = 0.40
SHOWCASE_IMAGE_START = 0.45
SHOWCASE_IMAGE_SHARE = 0.55


def available_images(slide: SlideContent, request_id=None) -> List[ImageRef]:
    """Images whose file exists, in slide order. Missing files are logged and dropped."""
    found = []
    for image in slide.images:
        if image.exists():
            found.append(image)
        else:
            _log(f"Image file not found, skipping: {image.file_path}", request_id)
    return found


def body_shape(slide: SlideContent, box: Box):
    """Body text box, or bulleted `bullet_points` when there is no description."""
    if slide.body_text:
        lines = [line.strip() for line in slide.body_text.splitlines() if line.strip()]
        return PlacedShape("text", box, lines)
    points = [p.strip() for p in slide.bullet_points if p and p.strip()]
    if points:
        return PlacedShape.bullets(box, points)
    return None


def stacked_text(slide: SlideContent, canvas: SlideSize):
    """Title then body from the top of the slide. Returns (shapes, y below the text)."""
    shapes = []
    y = TITLE_TOP
    width = min(TEXT_WIDTH, canvas.width - TEXT_LEFT)
    if slide.title.strip():
        shapes.append(PlacedShape.text(
            Box(TEXT_LEFT, y, width, TITLE_HEIGHT), slide.title.strip(), TITLE_FONT_SIZE, bold=True))
        y += TITLE_ADVANCE
    body = body_shape(slide, Box(TEXT_LEFT, y, width, BODY_HEIGHT))
    if body is not None:
        shapes.append(body)
        y += BODY_ADVANCE
    return shapes, y


def fit_into(image: ImageRef, box: Box, padding=0, request_id=None) -> PlacedShape:
    """Scale `image` down into `box` less `padding` and centre it there."""
    width_px, height_px = read_dimensions(image.file_path, request_id)
    width, height = fit_within_bounds(
        width_px, height_px, max(1, box.width - padding), max(1, box.height - padding))
    return PlacedShape.picture(box.center(width, height), image)


def clamp_below(box: Box, top: int, canvas: SlideSize, reserve=0) -> Box:
    """Move `box` below `top` if needed and shrink it to end above the bottom margin."""
    y = max(box.y, top)
    height = min(box.height, canvas.height - BOTTOM_MARGIN - reserve - y)
    return Box(box.x, y, box.width, max(1, height))


class LayoutPolicy:
    variant = None
    min_images = 0
    max_images = None

    def accepts(self, image_count):
        if image_count < self.min_images:
            return False
        return self.max_images is None or image_count <= self.max_images

    def place(self, slide: SlideContent, canvas: SlideSize, request_id=None) -> List[PlacedShape]:
        images = available_images(slide, request_id)
        if not self.accepts(len(images)):
            _log(f"Layout {self.variant.value} cannot hold {len(images)} image(s), using standard flow", request_id)
            return STANDARD.arrange(slide, images, canvas, request_id)
        return self.arrange(slide, images, canvas, request_id)

    def arrange(self, slide, images, canvas, request_id=None):
        raise NotImplementedError


class StandardFlow(LayoutPolicy):
    """Stacked text, then one centred image or a two-column grid below it."""
    variant = LayoutVariant.TITLE_AND_CONTENT

    def arrange(self, slide, images, canvas, request_id=None):
        shapes, top = stacked_text(slide, canvas)
        if len(images) == 1:
            shapes.append(self.single(images[0], top, canvas, request_id))
        elif images:
            shapes.extend(self.grid(images, top, canvas, request_id))
        return shapes

    def single(self, image, top, canvas, request_id=None):
        available = canvas.height - top - BOTTOM_MARGIN
        width_px, height_px = read_dimensions(image.file_path, request_id)
        width, height = fit_within_bounds(
            width_px, height_px,
            canvas.width - 2 * SINGLE_IMAGE_MARGIN,
            max(1, available - SINGLE_IMAGE_MARGIN),
        )
        box = Box((canvas.width - width) // 2, top + SINGLE_IMAGE_MARGIN, width, height)
        return PlacedShape.picture(box, image)

    def grid(self, images, top, canvas, request_id=None):
        per_row = min(GRID_COLUMNS, len(images))
        rows = math.ceil(len(images) / per_row)
        cell_width = (canvas.width - 2 * GRID_INSET) // per_row
        cell_height = max(1, (canvas.height - top - BOTTOM_MARGIN) // rows)
        placed = []
        for index, image in enumerate(images):
            row, col = divmod(index, per_row)
            cell = Box(GRID_INSET + col * cell_width, top + row * cell_height, cell_width, cell_height)
            placed.append(fit_into(image, cell, CELL_PADDING, request_id))
        return placed


class ImageFocused(LayoutPolicy):
    variant = LayoutVariant.IMAGE_FOCUSED
    min_images = 1
    max_images = 1

    def arrange(self, slide, images, canvas, request_id=None):
        shapes, top = stacked_text(slide, canvas)
        box = FOCUSED_BOX._replace(x=(canvas.width - FOCUSED_BOX.width) // 2)
        shapes.append(fit_into(images[0], clamp_below(box, top, canvas), request_id=request_id))
        return shapes


class ImageGrid(LayoutPolicy):
    variant = LayoutVariant.IMAGE_GRID
    min_images = 2

    def arrange(self, slide, images, canvas, request_id=None):
        shapes, top = stacked_text(slide, canvas)
        if len(images) > GRID_MAX_IMAGES:
            _log(f"Image grid holds {GRID_MAX_IMAGES} images, dropping {len(images) - GRID_MAX_IMAGES}", request_id)
            images = images[:GRID_MAX_IMAGES]
        x0, y0 = GRID_ORIGIN
        y0 = max(y0, top)
        rows = math.ceil(len(images) / GRID_COLUMNS)
        pitch_y = min(GRID_PITCH[1], max(1, (canvas.height - BOTTOM_MARGIN - y0) // rows))
        cell_height = min(GRID_CELL[1], pitch_y)
        for index, image in enumerate(images):
            row, col = divmod(index, GRID_COLUMNS)
            cell = Box(x0 + col * GRID_PITCH[0], y0 + row * pitch_y, GRID_CELL[0], cell_height)
            shapes.append(fit_into(image, cell, request_id=request_id))
        return shapes


class TwoImageComparison(LayoutPolicy):
    variant = LayoutVariant.TWO_IMAGE_COMPARISON
    min_images = 2

    def arrange(self, slide, images, canvas, request_id=None):
        shapes, top = stacked_text(slide, canvas)
        if len(images) > 2:
            _log(f"Comparison layout shows 2 images, dropping {len(images) - 2}", request_id)
        for image, box in zip(images, COMPARISON_BOXES):
            shapes.append(fit_into(image, clamp_below(box, top, canvas), request_id=request_id))
        return shapes


class SingleImageWithCaption(LayoutPolicy):
    variant = LayoutVariant.SINGLE_IMAGE_WITH_CAPTION
    min_images = 1

    def arrange(self, slide, images, canvas, request_id=None):
        shapes, top = stacked_text(slide, canvas)
        image = slide.primary_image if slide.primary_image in images else images[0]
        box = clamp_below(CAPTION_IMAGE_BOX, top, canvas, reserve=CAPTION_HEIGHT)
        picture = fit_into(image, box, request_id=request_id)
        shapes.append(picture)
        if image.caption.strip():
            caption_box = Box(box.x, picture.box.bottom, box.width, CAPTION_HEIGHT)
            shapes.append(PlacedShape.text(caption_box, image.caption.strip(), CAPTION_FONT_SIZE))
        return shapes


class ProductShowcase(LayoutPolicy):
    """Text column on the left, image column over the full slide height on the right."""
    variant = LayoutVariant.PRODUCT_SHOWCASE

    def arrange(self, slide, images, canvas, request_id=None):
        shapes = []
        column_width = int(canvas.width * SHOWCASE_TEXT_SHARE) - SHOWCASE_MARGIN
        y = TITLE_TOP
        if slide.title.strip():
            shapes.append(PlacedShape.text(
                Box(SHOWCASE_MARGIN, y, column_width, TITLE_HEIGHT), slide.title.strip(),
                TITLE_FONT_SIZE, bold=True))
            y += TITLE_ADVANCE

        body_box = Box(SHOWCASE_MARGIN, y, column_width, max(1, canvas.height - BOTTOM_MARGIN - y))
        paragraphs, bulleted = showcase_paragraphs(slide.body_text)
        if paragraphs:
            shapes.append(PlacedShape("text", body_box, paragraphs, bulleted=bulleted))
        else:
            body = body_shape(slide, body_box)
            if body is not None:
                shapes.append(body)

        if images:
            x = int(canvas.width * SHOWCASE_IMAGE_START)
            width = int(canvas.width * SHOWCASE_IMAGE_SHARE)
            cell_height = canvas.height // len(images)
            for index, image in enumerate(images):
                cell = Box(x, index * cell_height, width, cell_height)
                shapes.append(fit_into(image, cell, request_id=request_id))
        return shapes


STANDARD = StandardFlow()

POLICIES = {
    LayoutVariant.TITLE: STANDARD,
    LayoutVariant.TITLE_AND_CONTENT: STANDARD,
    LayoutVariant.IMAGE_FOCUSED: ImageFocused(),
    LayoutVariant.IMAGE_GRID: ImageGrid(),
    LayoutVariant.TWO_IMAGE_COMPARISON: TwoImageComparison(),
    LayoutVariant.SINGLE_IMAGE_WITH_CAPTION: SingleImageWithCaption(),
    LayoutVariant.PRODUCT_SHOWCASE: ProductShowcase(),
}


def select_policy(slide: SlideContent) -> LayoutPolicy:
    return POLICIES.get(slide.layout, STANDARD)
