import re
import zipfile
from typing import List

from lxml import etree

from .xml_handler import RELS_NS, list_parts, read_xml_parts, rels_name_for, resolve_target

NS = {
    "p": "http://schemas.openxmlformats.org/presentationml/2006/main",
    "r": "http://schemas.openxmlformats.org/officeDocument/2006/relationships",
    "rel": RELS_NS,
}
FIRST_SLIDE_ID = 256

REQUIRED_PARTS = ("[Content_Types].xml", "ppt/presentation.xml")
SINGLETON_PARTS = {
    "slide master": re.compile(r"^ppt/slideMasters/slideMaster\d+\.xml$"),
    "slide layout": re.compile(r"^ppt/slideLayouts/slideLayout\d+\.xml$"),
    "theme": re.compile(r"^ppt/theme/theme\d+\.xml$"),
}


def _parse(xml):
    """Parse str or bytes; bytes keep the part's declared encoding."""
    if isinstance(xml, str):
        xml = xml.encode("utf-8")
    return etree.fromstring(xml)


def validate_xml(xml_text):
    """Return True if xml_text (str or bytes) is well-formed."""
    try:
        _parse(xml_text)
        return True
    except etree.XMLSyntaxError as e:
        print(f"Invalid XML detected: {e}")
        return False


def _relationships(parts, part_name):
    """{rId: resolved target} for the internal relationships of `part_name`."""
    rels_xml = parts.get(rels_name_for(part_name))
    if rels_xml is None:
        return {}
    rels = {}
    for rel in _parse(rels_xml).iterfind("rel:Relationship", NS):
        if rel.get("TargetMode") == "External":
            continue
        rels[rel.get("Id")] = resolve_target(part_name, rel.get("Target"))
    return rels


def _check_slide_ids(presentation, problems):
    ids = [int(v) for v in presentation.xpath("./p:sldIdLst/p:sldId/@id", namespaces=NS)]
    expected = list(range(FIRST_SLIDE_ID, FIRST_SLIDE_ID + len(ids)))
    if ids != expected:
        problems.append(f"Slide ids {ids} are not sequential from {FIRST_SLIDE_ID}")


def _check_slides(parts, names, presentation, problems):
    """`parts` holds only well-formed XML; `names` is every member of the archive."""
    prs_rels = _relationships(parts, "ppt/presentation.xml")
    for rid in presentation.xpath("./p:sldIdLst/p:sldId/@r:id", namespaces=NS):
        target = prs_rels.get(rid)
        if target is None or target not in names:
            problems.append(f"Slide id entry {rid} does not resolve to a slide part")
            continue
        if target not in parts:
            continue
        slide = _parse(parts[target])
        slide_rels = _relationships(parts, target)
        for embed in slide.xpath(".//@r:embed", namespaces=NS):
            if embed not in slide_rels:
                problems.append(f"{target}: picture reference {embed} has no relationship")
            elif slide_rels[embed] not in names:
                problems.append(f"{target}: picture reference {embed} points at missing {slide_rels[embed]}")


def check_package(path, expect_single_master=True, expect_sequential_ids=False) -> List[str]:
    """
    Re-open a saved .pptx and report structural problems that make viewers
    ask for repair. Returns a list of human-readable problems, empty when
    the package looks sound.
    """
    try:
        parts = read_xml_parts(path)
        names = set(list_parts(path))
    except zipfile.BadZipFile as e:
        return [f"Not a zip archive: {e}"]

    problems = [f"Missing required part {name}" for name in REQUIRED_PARTS if name not in names]
    if problems:
        return problems

    malformed = [name for name, xml in parts.items() if not validate_xml(xml)]
    problems.extend(f"Malformed XML in {name}" for name in malformed)
    if "ppt/presentation.xml" in malformed:
        return problems
    well_formed = {name: xml for name, xml in parts.items() if name not in malformed}

    presentation = _parse(parts["ppt/presentation.xml"])
    if expect_sequential_ids:
        _check_slide_ids(presentation, problems)
    _check_slides(well_formed, names, presentation, problems)

    if expect_single_master:
        for label, pattern in SINGLETON_PARTS.items():
            count = sum(1 for name in names if pattern.match(name))
            if count != 1:
                problems.append(f"Expected exactly one {label}, found {count}")
    return problems
