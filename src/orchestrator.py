# src/orchestrator.py
import os
import shutil
import tempfile
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from werkzeug.utils import secure_filename

import progress
from parsers import (
    parse_flexible,
    parse_json,
    parse_json_with_embedded_images
)
from pptgen import (
    DEFAULT_SLIDE_SIZE,
    create_presentation,
    create_presentation_from_template
)
from pptgen.images import read_dimensions
from pptgen.utils import _log

# --- Constants ---
SCRIPT_DIR = Path(__file__).parent.resolve()
DATA_DIR = Path(os.environ.get("PPTGEN_DATA_DIR", SCRIPT_DIR / "work_dir"))

OUTPUT_FOLDER = DATA_DIR / "output"
IMAGES_FOLDER = DATA_DIR / "images"
TEMPLATES_FOLDER = DATA_DIR / "templates"
EMBEDDED_IMAGES_FOLDER = DATA_DIR / "embedded_images"

DEFAULT_TEMPLATE_NAME = "test_template.pptx"
DEFAULT_AUTHOR = "API User"
ALLOWED_IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "bmp", "tif", "tiff", "webp"}
MAX_IMAGE_BYTES = 10 * 1024 * 1024


def configure(data_dir=None) -> None:
    """Point every working folder at `data_dir` (default: the current DATA_DIR) and create them."""
    global DATA_DIR, OUTPUT_FOLDER, IMAGES_FOLDER, TEMPLATES_FOLDER, EMBEDDED_IMAGES_FOLDER
    if data_dir is not None:
        DATA_DIR = Path(data_dir)
        OUTPUT_FOLDER = DATA_DIR / "output"
        IMAGES_FOLDER = DATA_DIR / "images"
        TEMPLATES_FOLDER = DATA_DIR / "templates"
        EMBEDDED_IMAGES_FOLDER = DATA_DIR / "embedded_images"
    for folder in [DATA_DIR, OUTPUT_FOLDER, IMAGES_FOLDER, TEMPLATES_FOLDER, EMBEDDED_IMAGES_FOLDER]:
        folder.mkdir(parents=True, exist_ok=True)


def new_request_id(prefix: str = "gen") -> str:
    request_id = f"{prefix}_{uuid.uuid4().hex[:8]}-{int(time.time())}"
    progress.start(request_id)
    return request_id


def allowed_image(filename: str) -> bool:
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_IMAGE_EXTENSIONS


def presentation_name_or_default(name: Optional[str]) -> str:
    if name and name.strip():
        return name.strip()
    return f"Presentation_{datetime.now().strftime('%Y%m%d_%H%M%S')}"


def output_path_for(presentation_name: str) -> Path:
    """Unique output file for one generation: `<name>_<hex>.pptx` in OUTPUT_FOLDER."""
    safe_name = secure_filename(presentation_name) or "Presentation"
    return OUTPUT_FOLDER / f"{safe_name}_{uuid.uuid4().hex}.pptx"


def template_path_for(template_name: Optional[str]) -> Path:
    name = (template_name or "").strip() or DEFAULT_TEMPLATE_NAME
    if not name.lower().endswith(".pptx"):
        name += ".pptx"
    return TEMPLATES_FOLDER / secure_filename(name)


def build_response(result, presentation_name: str, request_id: str) -> dict:
    output_path = Path(result.output_path)
    response = {
        "success": True,
        "file_name": output_path.name,
        "file_path": str(output_path),
        "presentation_name": presentation_name,
        "created_at": datetime.now(timezone.utc).isoformat(),
        "file_size": output_path.stat().st_size,
        "slide_count": result.slide_count,
        "download_url": f"/api/presentation/download/{output_path.name}",
        "request_id": request_id,
    }
    if result.problems:
        response["warnings"] = list(result.problems)
    return response


# --------------------------------------------------------------------------- #
# Generation pipelines                                                         #
# --------------------------------------------------------------------------- #
def generate_from_json(json_content, presentation_name=None, presentation_title=None,
                       author=None, request_id=None, slide_size=DEFAULT_SLIDE_SIZE) -> dict:
    """JSON slide document -> new presentation built from scratch."""
    request_id = request_id or new_request_id()
    name = presentation_name_or_default(presentation_name)
    progress.append(request_id, "Parsing JSON content", stage="content")
    content = parse_json(json_content, presentation_title or name, author or DEFAULT_AUTHOR, str(IMAGES_FOLDER))
    result = create_presentation(content, output_path_for(name), slide_size=slide_size, request_id=request_id)
    _log(f"Created presentation {result.output_path}", request_id)
    return build_response(result, name, request_id)


def generate_from_text(text_content, presentation_name=None, presentation_title=None,
                       author=None, request_id=None, slide_size=DEFAULT_SLIDE_SIZE) -> dict:
    """Slide outline text -> new presentation built from scratch."""
    request_id = request_id or new_request_id()
    name = presentation_name_or_default(presentation_name)
    progress.append(request_id, "Parsing slide text", stage="content")
    content = parse_flexible(text_content, presentation_title or name, author or DEFAULT_AUTHOR, str(IMAGES_FOLDER))
    result = create_presentation(content, output_path_for(name), slide_size=slide_size, request_id=request_id)
    _log(f"Created presentation {result.output_path}", request_id)
    return build_response(result, name, request_id)


def generate_from_template(json_content, template_name=None, presentation_name=None,
                           presentation_title=None, author=None, request_id=None) -> dict:
    """JSON slide document applied to a template in TEMPLATES_FOLDER."""
    request_id = request_id or new_request_id("tpl")
    name = presentation_name_or_default(presentation_name)
    template_path = template_path_for(template_name)
    progress.append(request_id, f"Using template {template_path.name}", stage="template")
    content = parse_json(json_content, presentation_title or name, author or DEFAULT_AUTHOR, str(IMAGES_FOLDER))
    result = create_presentation_from_template(content, template_path, output_path_for(name), request_id=request_id)
    return build_response(result, name, request_id)


def generate_from_template_with_embedded_images(json_content, template_name=None, presentation_name=None,
                                                presentation_title=None, author=None, request_id=None) -> dict:
    """Like generate_from_template, but the images travel base64-encoded inside the JSON."""
    request_id = request_id or new_request_id("tpl")
    name = presentation_name_or_default(presentation_name)
    template_path = template_path_for(template_name)
    progress.append(request_id, f"Using template {template_path.name}", stage="template")
    # decoded images are only needed until the package is saved
    work_dir = tempfile.mkdtemp(prefix=f"{secure_filename(request_id)}_", dir=str(EMBEDDED_IMAGES_FOLDER))
    try:
        content = parse_json_with_embedded_images(
            json_content, presentation_title or name, author or DEFAULT_AUTHOR, temp_root=work_dir)
        result = create_presentation_from_template(
            content, template_path, output_path_for(name), request_id=request_id)
    finally:
        shutil.rmtree(work_dir, ignore_errors=True)
    return build_response(result, name, request_id)


# --------------------------------------------------------------------------- #
# Folder listings                                                              #
# --------------------------------------------------------------------------- #
def _file_info(path: Path, url_prefix: str) -> dict:
    stat = path.stat()
    return {
        "file_name": path.name,
        "created_at": datetime.fromtimestamp(stat.st_mtime, timezone.utc).isoformat(),
        "file_size": stat.st_size,
        "url": f"{url_prefix}/{path.name}",
    }


def list_presentations() -> list:
    files = sorted(OUTPUT_FOLDER.glob("*.pptx"), key=lambda p: p.stat().st_mtime, reverse=True)
    return [_file_info(p, "/api/presentation/download") for p in files]


def list_images() -> list:
    images = []
    for path in sorted(IMAGES_FOLDER.iterdir()):
        if path.is_file() and allowed_image(path.name):
            info = _file_info(path, "/api/presentation/image")
            width, height = read_dimensions(str(path))
            info["dimensions"] = f"{width}x{height}"
            images.append(info)
    return images


def list_templates() -> list:
    return sorted(p.name for p in TEMPLATES_FOLDER.glob("*.pptx"))


def save_image(file_storage) -> dict:
    """Store an uploaded image under its sanitised name; an existing file is kept as is."""
    file_name = secure_filename(file_storage.filename or "")
    if not file_name or not allowed_image(file_name):
        raise ValueError(f"File type not allowed: {file_storage.filename}")
    path = IMAGES_FOLDER / file_name
    info = {"success": True, "file_name": file_name, "file_path": str(path),
            "image_url": f"/api/presentation/image/{file_name}"}
    if path.exists():
        info["message"] = "File already exists, upload skipped"
    else:
        file_storage.save(str(path))
        if path.stat().st_size > MAX_IMAGE_BYTES:
            path.unlink()
            raise ValueError(f"File {file_name} exceeds the 10MB limit")
    info["file_size"] = path.stat().st_size
    return info


configure()
