import pytest

from pptx.enum.shapes import MSO_SHAPE_TYPE
from pptx.parts.image import ImagePart

from pptgen.errors import PackageIOError
from pptgen.images import (
    FALLBACK_DIMENSIONS,
    classify_format,
    content_type_of,
    image_index,
    read_dimensions,
    register_image_part,
    relationship_id_of,
)
from pptgen.package import PackageHandle


@pytest.fixture
def slide(output_path):
    handle = PackageHandle.create(output_path, "Images", "Tests")
    yield handle.add_slide()
    handle.close()


class TestClassifyFormat:
    @pytest.mark.parametrize("path,expected", [
        ("photo.JPG", "jpeg"),
        ("photo.jpeg", "jpeg"),
        ("diagram.png", "png"),
        ("anim.GIF", "gif"),
        ("scan.bmp", "bmp"),
        ("scan.tif", "tiff"),
        ("scan.TIFF", "tiff"),
        ("modern.webp", "jpeg"),
        ("no_extension", "jpeg"),
    ])
    def test_by_extension(self, path, expected):
        assert classify_format(path) == expected

    def test_content_type(self):
        assert content_type_of("a.png") == "image/png"
        assert content_type_of("a.unknown") == "image/jpeg"


class TestReadDimensions:
    def test_real_image(self, make_image):
        assert read_dimensions(make_image("wide.png", 1920, 1080)) == (1920, 1080)

    def test_undecodable_file_falls_back(self, tmp_path):
        bogus = tmp_path / "broken.png"
        bogus.write_bytes(b"not an image at all")
        assert read_dimensions(str(bogus)) == FALLBACK_DIMENSIONS

    def test_missing_file_falls_back(self, tmp_path):
        assert read_dimensions(str(tmp_path / "nope.jpg")) == (800, 600)


class TestRegisterImagePart:
    def test_part_type_and_name_follow_extension(self, slide, make_image):
        part = register_image_part(slide.part, make_image("logo.png"))
        assert part.content_type == "image/png"
        assert part.partname.startswith("/ppt/media/image")
        assert part.partname.endswith(".png")

    def test_jpeg_part(self, slide, make_image):
        part = register_image_part(slide.part, make_image("photo.jpg"))
        assert part.content_type == "image/jpeg"

    def test_relationship_id_is_stable(self, slide, make_image):
        path = make_image("logo.png")
        first = relationship_id_of(slide.part, register_image_part(slide.part, path))
        second = relationship_id_of(slide.part, register_image_part(slide.part, path))
        assert first == second
        assert first.startswith("rId")

    def test_distinct_images_get_distinct_ids(self, slide, make_image):
        a = relationship_id_of(slide.part, register_image_part(slide.part, make_image("a.png", color=(1, 2, 3))))
        b = relationship_id_of(slide.part, register_image_part(slide.part, make_image("b.png", color=(4, 5, 6))))
        assert a != b

    def test_unreadable_path_is_an_io_fault(self, slide, tmp_path):
        with pytest.raises(PackageIOError):
            register_image_part(slide.part, str(tmp_path))


class TestImageIndex:
    def test_same_file_twice_returns_the_indexed_part(self, slide, make_image):
        path = make_image("logo.png")
        first = register_image_part(slide.part, path)
        second = register_image_part(slide.part, path)
        assert first is second
        assert image_index(slide.part.package)[first.sha1] is first

    def test_index_is_kept_per_package(self, slide, make_image):
        package = slide.part.package
        assert image_index(package) is image_index(package)

    def test_registered_parts_are_not_rehashed(self, slide, make_image, monkeypatch):
        register_image_part(slide.part, make_image("a.png", color=(1, 2, 3)))

        def rehash(self):
            raise AssertionError("image part hashed twice")

        monkeypatch.setattr(ImagePart, "sha1", property(rehash))
        path = make_image("b.png", color=(4, 5, 6))
        first = register_image_part(slide.part, path)
        assert register_image_part(slide.part, path) is first

    def test_template_picture_is_reused(self, template_path, tmp_path, output_path):
        handle = PackageHandle.open_template(template_path, output_path)
        try:
            page = handle.presentation.slides[0]
            existing = next(shape for shape in page.shapes if shape.shape_type == MSO_SHAPE_TYPE.PICTURE)
            existing_part = page.part.related_part(existing._element.blip_rId)
            part = register_image_part(page.part, str(tmp_path / "template_picture.png"))
            assert part is existing_part
        finally:
            handle.close()
