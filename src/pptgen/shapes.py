"""
Shape records and their rendering into a slide's `p:spTree`.

Layout policies decide *where* things go and return PlacedShape records;
`render_shapes` turns those records into shape XML, allocating shape ids and
registering image parts in placement order.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from pptx.oxml import parse_xml
from pptx.oxml.ns import nsdecls

from .geometry import Box
from .images import register_image_part, relationship_id_of
from .models import ImageRef
from .utils import _log, xml_text

TITLE_FONT_SIZE = 28
BODY_FONT_SIZE = 16
CAPTION_FONT_SIZE = 14
BULLET_INDENT = 285750


class ShapeIdAllocator:
    """Per-slide shape id counter. Id 1 belongs to the shape tree root."""

    def __init__(self, start=2):
        self._next = start
        self.allocated = []

    def next_id(self) -> int:
        shape_id = self._next
        self._next += 1
        self.allocated.append(shape_id)
        return shape_id


@dataclass
class PlacedShape:
    kind: str  # "text" or "picture"
    box: Box
    paragraphs: List[str] = field(default_factory=list)
    font_size: int = BODY_FONT_SIZE
    bold: bool = False
    bulleted: bool = False
    image: Optional[ImageRef] = None

    @classmethod
    def text(cls, box, text, font_size=BODY_FONT_SIZE, bold=False):
        return cls("text", box, [text], font_size, bold)

    @classmethod
    def bullets(cls, box, lines, font_size=BODY_FONT_SIZE):
        return cls("text", box, list(lines), font_size, bulleted=True)

    @classmethod
    def picture(cls, box, image):
        return cls("picture", box, image=image)


def _xfrm(box: Box) -> str:
    return (
        f'<a:xfrm><a:off x="{box.x}" y="{box.y}"/>'
        f'<a:ext cx="{box.width}" cy="{box.height}"/></a:xfrm>'
    )


def _paragraph(text, font_size, bold, bulleted):
    if bulleted:
        ppr = (
            f'<a:pPr marL="{BULLET_INDENT}" indent="-{BULLET_INDENT}">'
            '<a:buFont typeface="Arial"/><a:buChar char="&#8226;"/></a:pPr>'
        )
    else:
        ppr = "<a:pPr><a:buNone/></a:pPr>"
    bold_attr = ' b="1"' if bold else ""
    return (
        f"<a:p>{ppr}<a:r>"
        f'<a:rPr lang="en-US" sz="{font_size * 100}"{bold_attr} dirty="0"/>'
        f"<a:t>{xml_text(text)}</a:t>"
        "</a:r></a:p>"
    )


def text_box_xml(shape_id, shape: PlacedShape) -> str:
    paragraphs = "".join(
        _paragraph(text, shape.font_size, shape.bold, shape.bulleted)
        for text in shape.paragraphs
    )
    return (
        f'<p:sp {nsdecls("a", "p")}>'
        "<p:nvSpPr>"
        f'<p:cNvPr id="{shape_id}" name="TextBox {shape_id}"/>'
        '<p:cNvSpPr txBox="1"><a:spLocks noGrp="1"/></p:cNvSpPr><p:nvPr/>'
        "</p:nvSpPr>"
        f'<p:spPr>{_xfrm(shape.box)}<a:prstGeom prst="rect"><a:avLst/></a:prstGeom><a:noFill/></p:spPr>'
        '<p:txBody><a:bodyPr wrap="square" rtlCol="0"><a:normAutofit/></a:bodyPr><a:lstStyle/>'
        f"{paragraphs}"
        "</p:txBody>"
        "</p:sp>"
    )


def picture_xml(shape_id, rid, box: Box, alt_text="") -> str:
    return (
        f'<p:pic {nsdecls("a", "p", "r")}>'
        "<p:nvPicPr>"
        f'<p:cNvPr id="{shape_id}" name="Picture {shape_id}" descr="{xml_text(alt_text)}"/>'
        '<p:cNvPicPr><a:picLocks noChangeAspect="1"/></p:cNvPicPr><p:nvPr/>'
        "</p:nvPicPr>"
        f'<p:blipFill><a:blip r:embed="{rid}"/><a:stretch><a:fillRect/></a:stretch></p:blipFill>'
        f'<p:spPr>{_xfrm(box)}<a:prstGeom prst="rect"><a:avLst/></a:prstGeom></p:spPr>'
        "</p:pic>"
    )


def _append(sp_tree, xml):
    return sp_tree.insert_element_before(parse_xml(xml), "p:extLst")


def render_shapes(slide, placed: List[PlacedShape], ids: ShapeIdAllocator, request_id=None):
    """Append every placed shape to `slide`, in order. Returns the created elements."""
    sp_tree = slide.shapes._spTree
    elements = []
    for shape in placed:
        if shape.kind == "picture":
            image_part = register_image_part(slide.part, shape.image.file_path)
            rid = relationship_id_of(slide.part, image_part)
            xml = picture_xml(ids.next_id(), rid, shape.box, shape.image.alt_text)
        else:
            xml = text_box_xml(ids.next_id(), shape)
        elements.append(_append(sp_tree, xml))
    _log(f"Placed {len(elements)} shapes (ids {ids.allocated})", request_id)
    return elements
