import re
from typing import List
from xml.sax.saxutils import escape

import progress

BULLET_MARKERS = ("•", "- ", "* ", "– ")
MAX_SHOWCASE_BULLETS = 4

def _log(message, request_id=None, stage=None):
    """Print a pipeline message and mirror it to the request's progress log."""
    if request_id:
        print(f"[{request_id}] {message}")
        progress.append(request_id, str(message), stage=stage)
    else:
        print(message)

def xml_text(value) -> str:
    """Escape text for use inside an element or a double-quoted attribute."""
    return escape(str(value or ""), {'"': "&quot;"})

def has_bullet_marker(text: str) -> bool:
    stripped = text.lstrip()
    if stripped.startswith(BULLET_MARKERS):
        return True
    return re.match(r"^\d+[.)]\s", stripped) is not None

def strip_bullet_marker(line: str) -> str:
    stripped = line.strip()
    for marker in BULLET_MARKERS:
        if stripped.startswith(marker):
            return stripped[len(marker):].strip()
    return re.sub(r"^\d+[.)]\s+", "", stripped)

def split_sentences(text: str, limit: int = MAX_SHOWCASE_BULLETS) -> List[str]:
    """Split prose on full stops, dropping empty fragments, keeping at most `limit`."""
    sentences = [s.strip() for s in text.split(".")]
    return [s for s in sentences if s][:limit]

def showcase_paragraphs(text: str):
    """
    Turn body text into (paragraphs, bulleted) for the side-by-side showcase layout.

    Plain single-line prose is split into up to four sentence bullets. Text that
    already has bullet markers or line breaks keeps its own lines. A single
    sentence stays as prose.
    """
    text = (text or "").strip()
    if not text:
        return [], False

    if "\n" in text or has_bullet_marker(text):
        lines = [line for line in text.splitlines() if line.strip()]
        bulleted = any(has_bullet_marker(line) for line in lines)
        if bulleted:
            lines = [strip_bullet_marker(line) for line in lines]
        else:
            lines = [line.strip() for line in lines]
        return lines, bulleted

    sentences = split_sentences(text)
    if len(sentences) <= 1:
        return [text], False
    return sentences, True
