"""
The two public pipelines.

`create_presentation` builds a package from scratch; `create_presentation_from_template`
rewrites a copy of an existing deck. Both either leave a complete .pptx at
`output_path` or raise a GenerationError naming the stage that failed.
"""
from contextlib import contextmanager
from typing import List, NamedTuple

from .errors import GenerationError
from .geometry import DEFAULT_SLIDE_SIZE, SlideSize
from .layouts import select_policy
from .models import PresentationContent
from .package import PackageHandle
from .shapes import ShapeIdAllocator, render_shapes
from .template import rewrite_template
from .utils import _log
from .validation import check_package


class GenerationResult(NamedTuple):
    output_path: str
    slide_count: int
    problems: List[str]


@contextmanager
def _stage(name, request_id=None):
    """Re-raise anything but a GenerationError as one tagged with `name`."""
    try:
        yield
    except GenerationError:
        raise
    except Exception as e:
        _log(f"Stage '{name}' failed: {e}", request_id, stage=name)
        raise GenerationError(name, str(e)) from e


def _verify(output_path, request_id, **checks):
    """Check the saved package. The file is already in place, so a failing check is reported, not raised."""
    try:
        problems = check_package(output_path, **checks)
    except Exception as e:
        problems = [f"Package check could not complete: {type(e).__name__}: {e}"]
    for problem in problems:
        _log(f"Package check: {problem}", request_id, stage="save")
    return problems


def create_presentation(
    content: PresentationContent,
    output_path,
    slide_size: SlideSize = DEFAULT_SLIDE_SIZE,
    request_id=None,
) -> GenerationResult:
    content.require_slides()
    with _stage("skeleton", request_id):
        handle = PackageHandle.create(output_path, content.title, content.author, slide_size, request_id)

    with handle:
        with _stage("slides", request_id):
            total = len(content.slides)
            for number, slide in enumerate(content.slides, start=1):
                _log(f"Building slide {number}/{total}: '{slide.title}' ({slide.layout.value})", request_id, stage="slides")
                page = handle.add_slide()
                placed = select_policy(slide).place(slide, handle.slide_size, request_id)
                render_shapes(page, placed, ShapeIdAllocator(), request_id)
        with _stage("save", request_id):
            handle.save()

    problems = _verify(handle.output_path, request_id, expect_single_master=True, expect_sequential_ids=True)
    return GenerationResult(handle.output_path, len(content.slides), problems)


def create_presentation_from_template(
    content: PresentationContent,
    template_path,
    output_path,
    request_id=None,
) -> GenerationResult:
    content.require_slides()
    with _stage("template", request_id):
        handle = PackageHandle.open_template(template_path, output_path, request_id)

    with handle:
        with _stage("template", request_id):
            report = rewrite_template(handle.presentation, content, request_id)
            properties = handle.presentation.core_properties
            if content.title:
                properties.title = content.title
            if content.author:
                properties.author = content.author
        with _stage("save", request_id):
            handle.save()

    problems = _verify(handle.output_path, request_id, expect_single_master=False)
    return GenerationResult(handle.output_path, report.rewritten, problems)
