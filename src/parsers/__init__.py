from .json_parser import (
    parse_json,
    parse_json_file,
    parse_json_with_embedded_images
)
from .text_parser import (
    parse_slide_text,
    parse_flexible
)
