"""
Shared fixtures: synthetic images (Pillow) and a three-slide template (python-pptx).
"""
import zipfile
from pathlib import Path

import pytest
from PIL import Image
from pptx import Presentation
from pptx.util import Inches

from pptgen.models import ImageRef, PresentationContent, SlideContent
from pptgen.xml_handler import list_parts


@pytest.fixture
def make_image(tmp_path):
    """Factory: make_image("name.png", 1920, 1080) -> path of a real image file."""
    def _make(name="image.png", width=640, height=480, color=(200, 80, 40)):
        path = tmp_path / name
        fmt = "JPEG" if path.suffix.lower() in (".jpg", ".jpeg") else None
        Image.new("RGB", (width, height), color).save(path, format=fmt)
        return str(path)
    return _make


@pytest.fixture
def template_path(tmp_path, make_image):
    """Three slides, each with a {{TITLE}} box, a {{DESCRIPTION}} box and one picture."""
    picture = make_image("template_picture.png", 400, 300, (10, 10, 10))
    prs = Presentation()
    blank = prs.slide_layouts[6]
    for _ in range(3):
        slide = prs.slides.add_slide(blank)
        title = slide.shapes.add_textbox(Inches(1), Inches(0.5), Inches(8), Inches(1))
        title.text_frame.text = "{{TITLE}}"
        body = slide.shapes.add_textbox(Inches(1), Inches(1.5), Inches(8), Inches(1))
        body.text_frame.text = "Summary: [DESCRIPTION] (draft)"
        slide.shapes.add_picture(picture, Inches(2), Inches(3), Inches(4), Inches(3))
    path = tmp_path / "template.pptx"
    prs.save(str(path))
    return str(path)


@pytest.fixture
def q4_content(make_image):
    image = make_image("chart.png", 1920, 1080)
    slide = SlideContent(
        title="Q4 Results",
        description="Revenue grew.",
        images=[ImageRef(file_path=image, alt_text="Revenue chart")],
    )
    return PresentationContent(title="Quarterly Review", author="Finance", slides=[slide])


def slide_part_names(pptx_path):
    return sorted(n for n in list_parts(pptx_path) if n.startswith("ppt/slides/slide") and n.endswith(".xml"))


def media_part_names(pptx_path):
    return sorted(n for n in list_parts(pptx_path) if n.startswith("ppt/media/"))


@pytest.fixture
def package_parts():
    """Helpers for looking inside a saved package."""
    class Parts:
        slides = staticmethod(slide_part_names)
        media = staticmethod(media_part_names)
    return Parts


@pytest.fixture
def output_path(tmp_path) -> Path:
    return tmp_path / "out" / "deck.pptx"


CUSTOM_XML_REL = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/customXml"


@pytest.fixture
def utf16_template_path(tmp_path, template_path):
    """The three-slide template plus a UTF-16 encoded customXml/item1.xml, as Office writes them."""
    path = tmp_path / "template_utf16.pptx"
    custom_xml = '<?xml version="1.0" encoding="UTF-16"?><b:Sources xmlns:b="urn:example:sources"/>'
    with zipfile.ZipFile(template_path) as src, zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as dst:
        for info in src.infolist():
            data = src.read(info.filename)
            if info.filename == "[Content_Types].xml":
                data = data.replace(
                    b"</Types>",
                    b'<Override PartName="/customXml/item1.xml" ContentType="application/xml"/></Types>')
            elif info.filename == "_rels/.rels":
                data = data.replace(
                    b"</Relationships>",
                    f'<Relationship Id="rId99" Type="{CUSTOM_XML_REL}" Target="customXml/item1.xml"/>'
                    "</Relationships>".encode("utf-8"))
            dst.writestr(info.filename, data)
        dst.writestr("customXml/item1.xml", custom_xml.encode("utf-16"))
    return str(path)
