from .errors import (
    GenerationError,
    PreconditionError,
    EmptyPresentationError,
    ContentParseError,
    TemplateNotFoundError,
    DestinationError,
    PackageIOError
)
from .geometry import (
    EMU_PER_INCH,
    DEFAULT_SLIDE_SIZE,
    Box,
    SlideSize,
    to_emu,
    fit_within_bounds
)
from .models import (
    LayoutVariant,
    ImageRef,
    SlideContent,
    PresentationContent
)
from .generator import (
    GenerationResult,
    create_presentation,
    create_presentation_from_template
)
from .validation import check_package, validate_xml
