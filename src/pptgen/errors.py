"""Failures raised by the presentation pipelines.

Soft per-image problems are never raised; they are logged and skipped.
Everything here aborts the current generation call.
"""


class GenerationError(Exception):
    """A generation call failed during `stage`."""

    def __init__(self, stage: str, message: str):
        super().__init__(f"[{stage}] {message}")
        self.stage = stage
        self.message = message


class PreconditionError(GenerationError):
    """Raised before any output has been produced."""


class EmptyPresentationError(PreconditionError):
    def __init__(self, message: str = "No slides found in presentation content"):
        super().__init__("content", message)


class ContentParseError(PreconditionError):
    def __init__(self, message: str):
        super().__init__("content", message)


class TemplateNotFoundError(PreconditionError):
    def __init__(self, template_path):
        super().__init__("template", f"Template file not found: {template_path}")
        self.template_path = str(template_path)


class DestinationError(PreconditionError):
    def __init__(self, output_path, reason: str):
        super().__init__("save", f"Cannot write presentation to {output_path}: {reason}")
        self.output_path = str(output_path)


class PackageIOError(GenerationError):
    """Unexpected I/O fault while reading an image or writing the package."""
