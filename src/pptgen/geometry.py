from typing import NamedTuple, Tuple

EMU_PER_INCH = 914400
DEFAULT_DPI = 96.0


class SlideSize(NamedTuple):
    width: int
    height: int


# 10in x 7.5in
DEFAULT_SLIDE_SIZE = SlideSize(9144000, 6858000)


class Box(NamedTuple):
    """Axis-aligned rectangle in EMU."""
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def center(self, width: int, height: int) -> "Box":
        """Return a width x height box centred inside this one."""
        return Box(
            self.x + (self.width - width) // 2,
            self.y + (self.height - height) // 2,
            width,
            height,
        )

    def overlaps(self, other: "Box") -> bool:
        return (
            self.x < other.right and other.x < self.right
            and self.y < other.bottom and other.y < self.bottom
        )


def to_emu(pixels: int, dpi: float = DEFAULT_DPI) -> int:
    """Convert a pixel count to EMU at the given resolution."""
    return int(pixels * EMU_PER_INCH / dpi)


def fit_within_bounds(width_px: int, height_px: int, max_width: int, max_height: int) -> Tuple[int, int]:
    """
    Size an image of width_px x height_px so it fits inside max_width x max_height EMU.

    Images that already fit are returned at their natural size (never upscaled);
    larger ones are scaled down by a single factor so the aspect ratio is kept.
    A positive input never yields a zero dimension.
    """
    width = to_emu(width_px)
    height = to_emu(height_px)

    if width <= max_width and height <= max_height:
        return width, height

    scale = min(max_width / width, max_height / height)
    return max(1, int(width * scale)), max(1, int(height * scale))
