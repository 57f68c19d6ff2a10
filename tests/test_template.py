from pathlib import Path

import pytest
from pptx import Presentation
from pptx.enum.shapes import MSO_SHAPE_TYPE
from pptx.oxml import parse_xml
from pptx.oxml.ns import nsdecls, qn

from pptgen import (
    ImageRef,
    PresentationContent,
    SlideContent,
    TemplateNotFoundError,
    check_package,
    create_presentation_from_template,
)
from pptgen.template import (
    HAS_CONTENT,
    NO_CONTENT,
    find_blips,
    plan_slides,
    rewrite_template,
    substitute_text,
)
from pptgen.xml_handler import read_part_xml


def _pictures(slide):
    return slide._element.xpath(".//p:pic")


def _descr(picture):
    return picture.xpath("./p:nvPicPr/p:cNvPr")[0].get("descr")


def _pic(inner):
    return parse_xml(f'<p:pic {nsdecls("p", "a", "r")}>{inner}</p:pic>')


@pytest.fixture
def replacement(make_image):
    return make_image("replacement.png", 640, 480, (0, 200, 0))


@pytest.fixture
def two_slides(replacement):
    return PresentationContent(title="Rewritten", author="Ops", slides=[
        SlideContent(title="Revenue", description="Up 10%",
                     images=[ImageRef(file_path=replacement, alt_text="New picture")]),
        SlideContent(title="Outlook", description="Steady"),
    ])


# ========== Planning and text substitution ==========

class TestPlanSlides:
    def test_fewer_content_slides(self):
        assert plan_slides(3, 2) == [HAS_CONTENT, HAS_CONTENT, NO_CONTENT]

    def test_more_content_slides(self):
        assert plan_slides(2, 5) == [HAS_CONTENT, HAS_CONTENT]

    def test_no_template_slides(self):
        assert plan_slides(0, 3) == []


class TestSubstituteText:
    values = {"title": "Q4", "description": "Revenue grew", "synopsis": "Revenue grew"}

    def test_both_token_styles(self):
        assert substitute_text("{{TITLE}}", self.values) == "Q4"
        assert substitute_text("[TITLE]", self.values) == "Q4"

    def test_tokens_are_case_insensitive(self):
        assert substitute_text("{{ title }} / [Description]", self.values) == "Q4 / Revenue grew"

    def test_surrounding_text_is_kept(self):
        assert substitute_text("Summary: [SYNOPSIS] (draft)", self.values) == "Summary: Revenue grew (draft)"

    def test_plain_text_is_untouched(self):
        assert substitute_text("No tokens here", self.values) == "No tokens here"

    def test_values_are_inserted_literally(self):
        values = dict(self.values, title=r"C:\new\1")
        assert substitute_text("{{TITLE}}", values) == r"C:\new\1"


# ========== Blip search ==========

class TestFindBlips:
    def test_blip_fill_wins(self):
        pic = _pic('<p:blipFill><a:blip r:embed="rId2"/></p:blipFill>'
                   '<p:spPr><a:blipFill><a:blip r:embed="rId3"/></a:blipFill></p:spPr>')
        tier, blips = find_blips(pic)
        assert tier == "blip_fill"
        assert [b.get(qn("r:embed")) for b in blips] == ["rId2"]

    def test_direct_child(self):
        tier, blips = find_blips(_pic('<a:blip r:embed="rId4"/>'))
        assert tier == "direct"
        assert len(blips) == 1

    def test_shape_fill(self):
        tier, _ = find_blips(_pic('<p:spPr><a:blipFill><a:blip r:embed="rId5"/></a:blipFill></p:spPr>'))
        assert tier == "shape_fill"

    def test_deep_scan_rewrites_every_match(self):
        pic = _pic('<p:extra xmlns:x="urn:example"><x:blip/><x:nested><x:blip/></x:nested></p:extra>')
        tier, blips = find_blips(pic)
        assert tier == "deep_scan"
        assert len(blips) == 2

    def test_nothing_found(self):
        assert find_blips(_pic("<p:spPr/>")) == (None, [])


# ========== Whole-template rewrite ==========

class TestCreateFromTemplate:
    def test_three_slide_template_with_two_content_slides(self, template_path, two_slides, output_path, replacement):
        result = create_presentation_from_template(two_slides, template_path, output_path)

        assert result.slide_count == 2
        assert result.problems == []
        assert check_package(output_path, expect_single_master=False) == []

        prs = Presentation(str(output_path))
        assert len(prs.slides) == 2
        first, second = prs.slides
        texts = [shape.text_frame.text for shape in first.shapes if shape.has_text_frame]
        assert texts == ["Revenue", "Summary: Up 10% (draft)"]

        (picture,) = _pictures(first)
        assert _descr(picture) == "New picture"
        image = [shape for shape in first.shapes if shape.shape_type == MSO_SHAPE_TYPE.PICTURE][0].image
        assert image.blob == Path(replacement).read_bytes()

        assert [shape.text_frame.text for shape in second.shapes if shape.has_text_frame] == [
            "Outlook", "Summary: Steady (draft)"]
        assert _pictures(second) == []

    def test_unreachable_parts_are_not_written(self, template_path, two_slides, output_path, package_parts):
        create_presentation_from_template(two_slides, template_path, output_path)
        assert len(package_parts.slides(output_path)) == 2
        # the template's own picture is no longer referenced by any slide
        assert len(package_parts.media(output_path)) == 1

    def test_core_properties_follow_content(self, template_path, two_slides, output_path):
        create_presentation_from_template(two_slides, template_path, output_path)
        properties = Presentation(str(output_path)).core_properties
        assert properties.title == "Rewritten"
        assert properties.author == "Ops"

    def test_missing_image_removes_the_picture(self, template_path, tmp_path, output_path):
        content = PresentationContent(slides=[SlideContent(
            title="No picture", images=[ImageRef(file_path=str(tmp_path / "gone.png"))])])
        result = create_presentation_from_template(content, template_path, output_path)
        assert result.problems == []
        slide = Presentation(str(output_path)).slides[0]
        assert _pictures(slide) == []
        assert slide.shapes[0].text_frame.text == "No picture"

    def test_extra_content_slides_are_ignored(self, template_path, output_path):
        content = PresentationContent(slides=[SlideContent(title=f"S{i}") for i in range(5)])
        result = create_presentation_from_template(content, template_path, output_path)
        assert result.slide_count == 3
        assert len(Presentation(str(output_path)).slides) == 3

    def test_missing_template(self, tmp_path, two_slides, output_path):
        with pytest.raises(TemplateNotFoundError) as exc_info:
            create_presentation_from_template(two_slides, str(tmp_path / "nope.pptx"), output_path)
        assert exc_info.value.stage == "template"
        assert not output_path.exists()


class TestRewriteTemplate:
    def test_report_counts(self, template_path, two_slides):
        prs = Presentation(template_path)
        report = rewrite_template(prs, two_slides)
        assert report.as_dict() == {
            "rewritten": 2,
            "removed": 1,
            "pictures_replaced": 1,
            "pictures_removed": 1,
            "unmatched_pictures": 0,
        }
        assert len(prs._element.sldIdLst.sldId_lst) == 2


class TestTemplateEncodings:
    def test_utf16_part_survives_and_checks_clean(self, utf16_template_path, two_slides, output_path):
        result = create_presentation_from_template(two_slides, utf16_template_path, output_path)
        assert result.slide_count == 2
        assert result.problems == []
        assert read_part_xml(output_path, "customXml/item1.xml")[:2] in (b"\xff\xfe", b"\xfe\xff")
        assert check_package(output_path, expect_single_master=False) == []
