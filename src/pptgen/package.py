import io
import os

from pptx import Presentation

from .errors import DestinationError, PackageIOError, TemplateNotFoundError
from .geometry import DEFAULT_SLIDE_SIZE, SlideSize
from .skeleton import build_skeleton
from .utils import _log


def prepare_destination(output_path):
    """Create the output directory, failing before any generation work starts."""
    directory = os.path.dirname(os.path.abspath(output_path))
    try:
        os.makedirs(directory, exist_ok=True)
    except OSError as e:
        raise DestinationError(output_path, str(e)) from e
    if not os.access(directory, os.W_OK):
        raise DestinationError(output_path, "directory is not writable")
    if os.path.isdir(output_path):
        raise DestinationError(output_path, "path is a directory")


class PackageHandle:
    """
    One open presentation package bound to an output path.

    Use as a context manager. `save()` writes to `<output>.tmp` and moves it
    into place, so the output path only ever holds a complete package. Leaving
    the block without saving, or with an exception, leaves nothing behind.
    """

    def __init__(self, presentation, output_path, request_id=None):
        self.presentation = presentation
        self.output_path = str(output_path)
        self.request_id = request_id
        self.saved = False

    @classmethod
    def create(cls, output_path, title="", author="", slide_size: SlideSize = DEFAULT_SLIDE_SIZE, request_id=None):
        prepare_destination(output_path)
        blob = build_skeleton(title, author, slide_size)
        _log(f"Built package skeleton ({slide_size.width}x{slide_size.height} EMU)", request_id, stage="skeleton")
        return cls(Presentation(io.BytesIO(blob)), output_path, request_id)

    @classmethod
    def open_template(cls, template_path, output_path, request_id=None):
        if not os.path.isfile(template_path):
            raise TemplateNotFoundError(template_path)
        prepare_destination(output_path)
        # read fully so the template file handle is released immediately
        with open(template_path, "rb") as f:
            blob = f.read()
        _log(f"Opened template {template_path}", request_id, stage="template")
        return cls(Presentation(io.BytesIO(blob)), output_path, request_id)

    @property
    def slide_size(self) -> SlideSize:
        prs = self.presentation
        return SlideSize(int(prs.slide_width), int(prs.slide_height))

    @property
    def blank_layout(self):
        """The layout new slides are based on: type="blank" if present, else the first one."""
        layouts = self.presentation.slide_layouts
        for layout in layouts:
            if layout._element.get("type") == "blank":
                return layout
        return layouts[0]

    def add_slide(self):
        return self.presentation.slides.add_slide(self.blank_layout)

    def save(self):
        temp_path = self.output_path + ".tmp"
        try:
            self.presentation.save(temp_path)
            os.replace(temp_path, self.output_path)
        except OSError as e:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise PackageIOError("save", f"Failed to write {self.output_path}: {e}") from e
        self.saved = True
        _log(f"Saved presentation to {self.output_path}", self.request_id, stage="save")
        return self.output_path

    def close(self):
        temp_path = self.output_path + ".tmp"
        if os.path.exists(temp_path):
            os.remove(temp_path)
        self.presentation = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
