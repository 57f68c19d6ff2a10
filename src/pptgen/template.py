"""
Rewrites an existing template package in place from a PresentationContent.

The template's slide list is walked once, left to right. Slide i is rewritten
from content slide i when there is one; every other slide is removed
afterwards (its `p:sldId` entry and the presentation's relationship to its
part both go, so no dangling reference survives).
"""
import re
from typing import List, Tuple

from pptx.oxml.ns import qn

from .images import register_image_part, relationship_id_of
from .models import PresentationContent, SlideContent
from .utils import _log

HAS_CONTENT = "has_content"
NO_CONTENT = "no_content"

PLACEHOLDER_TOKENS = {
    "title": re.compile(r"\{\{\s*TITLE\s*\}\}|\[TITLE\]", re.IGNORECASE),
    "description": re.compile(r"\{\{\s*DESCRIPTION\s*\}\}|\[DESCRIPTION\]", re.IGNORECASE),
    "synopsis": re.compile(r"\{\{\s*SYNOPSIS\s*\}\}|\[SYNOPSIS\]", re.IGNORECASE),
}

# (name, xpath relative to the picture, rewrite every match)
BLIP_SEARCH_POLICY = (
    ("blip_fill", "./p:blipFill/a:blip", False),
    ("direct", "./a:blip", False),
    ("shape_fill", "./p:spPr/a:blipFill/a:blip", False),
    ("deep_scan", ".//*[local-name()='blip']", True),
)

IMAGE_REFERENCE_XPATH = ".//@r:embed | .//@r:link | .//@r:id"


class TemplateReport:
    def __init__(self):
        self.rewritten = 0
        self.removed = 0
        self.pictures_replaced = 0
        self.pictures_removed = 0
        self.unmatched_pictures = 0

    def as_dict(self):
        return dict(vars(self))


def plan_slides(slide_count, content_count) -> List[str]:
    """HAS_CONTENT for the first `content_count` template slides, NO_CONTENT for the rest."""
    return [HAS_CONTENT if index < content_count else NO_CONTENT for index in range(slide_count)]


def field_values(slide: SlideContent):
    return {
        "title": slide.title,
        "description": slide.description,
        "synopsis": slide.synopsis,
    }


def substitute_text(text: str, values) -> str:
    """Replace each placeholder token inside `text`, leaving the text around it alone."""
    for field, pattern in PLACEHOLDER_TOKENS.items():
        text = pattern.sub(lambda _m, value=values[field]: value, text)
    return text


def substitute_placeholders(slide_element, slide: SlideContent) -> int:
    """Rewrite every text run holding a token. Returns the number of runs changed."""
    values = field_values(slide)
    changed = 0
    for text_elm in slide_element.xpath(".//a:r/a:t"):
        original = text_elm.text or ""
        updated = substitute_text(original, values)
        if updated != original:
            text_elm.text = updated
            changed += 1
    return changed


def find_blips(picture) -> Tuple[str, list]:
    """Try each search tier in order; return (tier name, blips to rewrite) or (None, [])."""
    for name, path, rewrite_all in BLIP_SEARCH_POLICY:
        found = picture.xpath(path)
        if found:
            return name, (found if rewrite_all else found[:1])
    return None, []


def _set_alt_text(picture, alt_text):
    for c_nv_pr in picture.xpath("./*/p:cNvPr"):
        c_nv_pr.set("descr", alt_text or "")


def drop_unreferenced_rels(slide_part, rids):
    """Drop the slide's relationships in `rids` that no element still points at."""
    still_used = set(slide_part._element.xpath(IMAGE_REFERENCE_XPATH))
    for rid in set(rids) - still_used:
        if rid in slide_part.rels:
            slide_part.drop_rel(rid)


def remove_pictures(slide_part, pictures) -> int:
    rids = []
    for picture in pictures:
        rids.extend(picture.xpath(IMAGE_REFERENCE_XPATH))
        picture.getparent().remove(picture)
    drop_unreferenced_rels(slide_part, rids)
    return len(pictures)


def replace_picture(slide_part, picture, image, report, request_id=None):
    tier, blips = find_blips(picture)
    if not blips:
        report.unmatched_pictures += 1
        _log("No blip found in template picture; leaving it unchanged", request_id, stage="template")
        _set_alt_text(picture, image.alt_text)
        return

    old_rids = [blip.get(qn("r:embed")) for blip in blips if blip.get(qn("r:embed"))]
    image_part = register_image_part(slide_part, image.file_path)
    rid = relationship_id_of(slide_part, image_part)
    for blip in blips:
        blip.set(qn("r:embed"), rid)
    _set_alt_text(picture, image.alt_text)
    drop_unreferenced_rels(slide_part, [r for r in old_rids if r != rid])
    report.pictures_replaced += 1
    _log(f"Replaced picture image via {tier} ({rid})", request_id, stage="template")


def rewrite_slide(template_slide, slide: SlideContent, report, request_id=None):
    slide_part = template_slide.part
    element = template_slide._element
    runs = substitute_placeholders(element, slide)

    pictures = element.xpath(".//p:pic")
    image = slide.primary_image
    if image is None:
        report.pictures_removed += remove_pictures(slide_part, pictures)
    elif pictures:
        if image.exists():
            replace_picture(slide_part, pictures[0], image, report, request_id)
        else:
            _log(f"Image file not found, removing template picture: {image.file_path}", request_id, stage="template")
            report.pictures_removed += remove_pictures(slide_part, pictures[:1])
    report.rewritten += 1
    _log(f"Rewrote slide '{slide.title}' ({runs} text runs)", request_id, stage="template")


def remove_slides(presentation, sld_ids) -> int:
    """Remove each slide id entry and the relationship to its part."""
    sld_id_lst = presentation._element.sldIdLst
    prs_part = presentation.part
    for sld_id in sld_ids:
        rid = sld_id.rId
        sld_id_lst.remove(sld_id)
        prs_part.drop_rel(rid)
    return len(sld_ids)


def rewrite_template(presentation, content: PresentationContent, request_id=None) -> TemplateReport:
    """Apply `content` to an opened template presentation. Returns what was done."""
    report = TemplateReport()
    sld_id_lst = presentation._element.sldIdLst
    sld_ids = list(sld_id_lst.sldId_lst) if sld_id_lst is not None else []
    plan = plan_slides(len(sld_ids), len(content.slides))

    marked = []
    for index, (sld_id, state) in enumerate(zip(sld_ids, plan)):
        if state == HAS_CONTENT:
            template_slide = presentation.part.related_slide(sld_id.rId)
            rewrite_slide(template_slide, content.slides[index], report, request_id)
        else:
            marked.append(sld_id)

    report.removed = remove_slides(presentation, marked) if marked else 0
    if len(content.slides) > len(sld_ids):
        _log(
            f"Template has {len(sld_ids)} slides; {len(content.slides) - len(sld_ids)} content slides were not used",
            request_id, stage="template",
        )
    _log(f"Template rewrite done: {report.as_dict()}", request_id, stage="template")
    return report
