import posixpath
import zipfile

RELS_NS = "http://schemas.openxmlformats.org/package/2006/relationships"


def list_parts(pptx_filepath):
    """Names of every member of the .pptx archive, directories excluded."""
    with zipfile.ZipFile(pptx_filepath, 'r') as pptx_zip:
        return [info.filename for info in pptx_zip.infolist() if not info.is_dir()]


def read_part_xml(pptx_filepath, part_name):
    """
    Return the raw bytes of one XML part (e.g. 'ppt/slides/slide1.xml') of a .pptx file,
    or None when the archive has no such member. Parts are left undecoded so
    the XML parser can honour each part's declared encoding (UTF-8 or UTF-16).
    """
    part_name = part_name.replace("\\", "/").lstrip("/")
    with zipfile.ZipFile(pptx_filepath, 'r') as pptx_zip:
        if part_name not in pptx_zip.namelist():
            return None
        with pptx_zip.open(part_name) as xml_file:
            return xml_file.read()


def read_xml_parts(pptx_filepath):
    """Return {part name: xml bytes} for every .xml and .rels member."""
    parts = {}
    with zipfile.ZipFile(pptx_filepath, 'r') as pptx_zip:
        for info in pptx_zip.infolist():
            if not info.is_dir() and info.filename.endswith(('.xml', '.rels')):
                parts[info.filename] = pptx_zip.read(info.filename)
    return parts


def rels_name_for(part_name):
    """'ppt/slides/slide1.xml' -> 'ppt/slides/_rels/slide1.xml.rels'"""
    directory, name = posixpath.split(part_name)
    return posixpath.join(directory, "_rels", name + ".rels")


def resolve_target(part_name, target):
    """Resolve a relationship target relative to the part that owns the relationship."""
    if target.startswith("/"):
        return target.lstrip("/")
    return posixpath.normpath(posixpath.join(posixpath.dirname(part_name), target))
