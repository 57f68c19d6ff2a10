import hashlib
import os
import weakref
from typing import Tuple

from PIL import Image, UnidentifiedImageError
from pptx.opc.constants import CONTENT_TYPE as CT
from pptx.opc.constants import RELATIONSHIP_TYPE as RT
from pptx.parts.image import ImagePart

from .errors import PackageIOError
from .utils import _log

# pixels, used whenever an image header cannot be decoded
FALLBACK_DIMENSIONS = (800, 600)

IMAGE_FORMATS = {
    ".jpg": "jpeg",
    ".jpeg": "jpeg",
    ".png": "png",
    ".gif": "gif",
    ".bmp": "bmp",
    ".tif": "tiff",
    ".tiff": "tiff",
}

FORMAT_CONTENT_TYPES = {
    "jpeg": CT.JPEG,
    "png": CT.PNG,
    "gif": CT.GIF,
    "bmp": CT.BMP,
    "tiff": CT.TIFF,
}

# per-package image lookup, released with the package
_IMAGE_INDEXES = weakref.WeakKeyDictionary()


def classify_format(file_path) -> str:
    """Classify an image by extension; anything unrecognised is treated as jpeg."""
    ext = os.path.splitext(str(file_path))[1].lower()
    return IMAGE_FORMATS.get(ext, "jpeg")


def content_type_of(file_path) -> str:
    return FORMAT_CONTENT_TYPES[classify_format(file_path)]


def read_dimensions(file_path, request_id=None) -> Tuple[int, int]:
    """Return (width, height) in pixels, or FALLBACK_DIMENSIONS if the file cannot be decoded."""
    try:
        with Image.open(file_path) as img:
            width, height = img.size
    except (OSError, UnidentifiedImageError, ValueError, Image.DecompressionBombError) as e:
        _log(f"Could not read dimensions of {file_path}, using {FALLBACK_DIMENSIONS}: {e}", request_id)
        return FALLBACK_DIMENSIONS
    if width <= 0 or height <= 0:
        return FALLBACK_DIMENSIONS
    return width, height


def image_index(package):
    """
    {sha1: ImagePart} for `package`, hashed once per package.

    Seeded from the parts already in the package (template pictures included)
    and kept current by register_image_part, so each image blob is hashed once.
    """
    index = _IMAGE_INDEXES.get(package)
    if index is None:
        index = {}
        for part in package.iter_parts():
            if isinstance(part, ImagePart):
                index.setdefault(part.sha1, part)
        _IMAGE_INDEXES[package] = index
    return index


def register_image_part(owner_part, file_path, dedupe=True) -> ImagePart:
    """
    Stream `file_path` into a new image part of the package that owns `owner_part`.

    The file is expected to exist; a read failure at this point is an I/O
    fault and is raised as PackageIOError. With `dedupe`, a byte-identical
    image already in the package is reused instead of stored twice.
    """
    try:
        with open(file_path, "rb") as f:
            blob = f.read()
    except OSError as e:
        raise PackageIOError("slides", f"Cannot read image {file_path}: {e}") from e

    package = owner_part.package
    index = image_index(package)
    sha1 = hashlib.sha1(blob).hexdigest()
    if dedupe and sha1 in index:
        return index[sha1]

    image_format = classify_format(file_path)
    partname = package.next_image_partname(image_format)
    part = ImagePart(partname, FORMAT_CONTENT_TYPES[image_format], package, blob, os.path.basename(file_path))
    index.setdefault(sha1, part)
    return part


def relationship_id_of(owner_part, image_part) -> str:
    """Relate the slide to `image_part` (idempotently) and return the rId for blip references."""
    return owner_part.relate_to(image_part, RT.IMAGE)

