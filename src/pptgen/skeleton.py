"""
Minimal part graph for a brand-new presentation package.

Produces one presentation part, exactly one slide master with one blank
layout, one theme, the slide-size and default-text-style declarations and the
document property parts. Slides are added later through the package handle,
which allocates slide ids from 256 upward.
"""
import io
from datetime import datetime, timezone
from zipfile import ZIP_DEFLATED, ZipFile

from .geometry import DEFAULT_SLIDE_SIZE, SlideSize
from .utils import xml_text

XML_HEADER = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'

NS_A = "http://schemas.openxmlformats.org/drawingml/2006/main"
NS_P = "http://schemas.openxmlformats.org/presentationml/2006/main"
NS_R = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
NS_PKG_RELS = "http://schemas.openxmlformats.org/package/2006/relationships"
PML_NS_DECLS = f'xmlns:a="{NS_A}" xmlns:r="{NS_R}" xmlns:p="{NS_P}"'

RT_BASE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
RT_OFFICE_DOCUMENT = f"{RT_BASE}/officeDocument"
RT_EXTENDED_PROPERTIES = f"{RT_BASE}/extended-properties"
RT_CORE_PROPERTIES = "http://schemas.openxmlformats.org/package/2006/relationships/metadata/core-properties"
RT_SLIDE_MASTER = f"{RT_BASE}/slideMaster"
RT_SLIDE_LAYOUT = f"{RT_BASE}/slideLayout"
RT_THEME = f"{RT_BASE}/theme"
RT_PRES_PROPS = f"{RT_BASE}/presProps"
RT_VIEW_PROPS = f"{RT_BASE}/viewProps"
RT_TABLE_STYLES = f"{RT_BASE}/tableStyles"

CT_BASE = "application/vnd.openxmlformats-officedocument"
CONTENT_TYPE_OVERRIDES = {
    "/ppt/presentation.xml": f"{CT_BASE}.presentationml.presentation.main+xml",
    "/ppt/slideMasters/slideMaster1.xml": f"{CT_BASE}.presentationml.slideMaster+xml",
    "/ppt/slideLayouts/slideLayout1.xml": f"{CT_BASE}.presentationml.slideLayout+xml",
    "/ppt/theme/theme1.xml": f"{CT_BASE}.theme+xml",
    "/ppt/presProps.xml": f"{CT_BASE}.presentationml.presProps+xml",
    "/ppt/viewProps.xml": f"{CT_BASE}.presentationml.viewProps+xml",
    "/ppt/tableStyles.xml": f"{CT_BASE}.presentationml.tableStyles+xml",
    "/docProps/core.xml": "application/vnd.openxmlformats-package.core-properties+xml",
    "/docProps/app.xml": f"{CT_BASE}.extended-properties+xml",
}

SLIDE_MASTER_ID = 2147483648
SLIDE_LAYOUT_ID = 2147483649
LEVEL_INDENT = 457200

# Office colour scheme: dk1, lt1, dk2, lt2, accent1-6, hlink, folHlink
THEME_COLORS = (
    ("dk1", '<a:sysClr val="windowText" lastClr="000000"/>'),
    ("lt1", '<a:sysClr val="window" lastClr="FFFFFF"/>'),
    ("dk2", '<a:srgbClr val="44546A"/>'),
    ("lt2", '<a:srgbClr val="E7E6E6"/>'),
    ("accent1", '<a:srgbClr val="4472C4"/>'),
    ("accent2", '<a:srgbClr val="E15759"/>'),
    ("accent3", '<a:srgbClr val="70AD47"/>'),
    ("accent4", '<a:srgbClr val="FFC000"/>'),
    ("accent5", '<a:srgbClr val="5B9BD5"/>'),
    ("accent6", '<a:srgbClr val="FF6600"/>'),
    ("hlink", '<a:srgbClr val="0563C1"/>'),
    ("folHlink", '<a:srgbClr val="954F72"/>'),
)

MAJOR_FONT = ("Calibri Light", "020F0302020204030204")
MINOR_FONT = ("Calibri", "020F0502020204030204")


def _relationships(rels):
    body = "".join(
        f'<Relationship Id="{rid}" Type="{reltype}" Target="{target}"/>'
        for rid, reltype, target in rels
    )
    return f'{XML_HEADER}<Relationships xmlns="{NS_PKG_RELS}">{body}</Relationships>'


def _content_types():
    overrides = "".join(
        f'<Override PartName="{name}" ContentType="{ctype}"/>'
        for name, ctype in CONTENT_TYPE_OVERRIDES.items()
    )
    return (
        f"{XML_HEADER}"
        '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
        '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
        '<Default Extension="xml" ContentType="application/xml"/>'
        f"{overrides}"
        "</Types>"
    )


def _empty_shape_tree():
    return (
        "<p:spTree>"
        '<p:nvGrpSpPr><p:cNvPr id="1" name=""/><p:cNvGrpSpPr/><p:nvPr/></p:nvGrpSpPr>'
        "<p:grpSpPr><a:xfrm>"
        '<a:off x="0" y="0"/><a:ext cx="0" cy="0"/><a:chOff x="0" y="0"/><a:chExt cx="0" cy="0"/>'
        "</a:xfrm></p:grpSpPr>"
        "</p:spTree>"
    )


def _default_run_props(size=1800):
    return (
        f'<a:defRPr sz="{size}" kern="1200">'
        '<a:solidFill><a:schemeClr val="tx1"/></a:solidFill>'
        '<a:latin typeface="+mn-lt"/><a:ea typeface="+mn-ea"/><a:cs typeface="+mn-cs"/>'
        "</a:defRPr>"
    )


def _level_paragraph_props(level, size=1800):
    return (
        f'<a:lvl{level}pPr marL="{(level - 1) * LEVEL_INDENT}" algn="l" defTabSz="914400" '
        'rtl="0" eaLnBrk="1" latinLnBrk="0" hangingPunct="1">'
        f"{_default_run_props(size)}"
        f"</a:lvl{level}pPr>"
    )


def _default_text_style():
    """defPPr plus all nine outline levels; viewers ask for repair without them."""
    levels = "".join(_level_paragraph_props(level) for level in range(1, 10))
    return (
        "<p:defaultTextStyle>"
        '<a:defPPr><a:defRPr lang="en-US"/></a:defPPr>'
        f"{levels}"
        "</p:defaultTextStyle>"
    )


def _presentation(slide_size: SlideSize):
    size_type = ' type="screen4x3"' if slide_size == DEFAULT_SLIDE_SIZE else ""
    return (
        f'{XML_HEADER}<p:presentation {PML_NS_DECLS} saveSubsetFonts="1">'
        f'<p:sldMasterIdLst><p:sldMasterId id="{SLIDE_MASTER_ID}" r:id="rId1"/></p:sldMasterIdLst>'
        f'<p:sldSz cx="{slide_size.width}" cy="{slide_size.height}"{size_type}/>'
        '<p:notesSz cx="6858000" cy="9144000"/>'
        f"{_default_text_style()}"
        "</p:presentation>"
    )


def _slide_master():
    title_style = (
        '<p:titleStyle><a:lvl1pPr algn="l" rtl="0" eaLnBrk="1" latinLnBrk="0" hangingPunct="1">'
        '<a:defRPr sz="4400" kern="1200"><a:solidFill><a:schemeClr val="tx1"/></a:solidFill>'
        '<a:latin typeface="+mj-lt"/><a:ea typeface="+mj-ea"/><a:cs typeface="+mj-cs"/></a:defRPr>'
        "</a:lvl1pPr></p:titleStyle>"
    )
    body_style = (
        '<p:bodyStyle><a:lvl1pPr marL="228600" indent="-228600" algn="l" rtl="0" eaLnBrk="1" '
        'latinLnBrk="0" hangingPunct="1">'
        '<a:buFont typeface="Arial"/><a:buChar char="&#8226;"/>'
        f"{_default_run_props(2800)}"
        "</a:lvl1pPr></p:bodyStyle>"
    )
    other_style = (
        '<p:otherStyle><a:defPPr><a:defRPr lang="en-US"/></a:defPPr>'
        f"{_level_paragraph_props(1)}"
        "</p:otherStyle>"
    )
    return (
        f"{XML_HEADER}<p:sldMaster {PML_NS_DECLS}>"
        "<p:cSld>"
        '<p:bg><p:bgRef idx="1001"><a:schemeClr val="bg1"/></p:bgRef></p:bg>'
        f"{_empty_shape_tree()}"
        "</p:cSld>"
        '<p:clrMap bg1="lt1" tx1="dk1" bg2="lt2" tx2="dk2" accent1="accent1" accent2="accent2" '
        'accent3="accent3" accent4="accent4" accent5="accent5" accent6="accent6" '
        'hlink="hlink" folHlink="folHlink"/>'
        f'<p:sldLayoutIdLst><p:sldLayoutId id="{SLIDE_LAYOUT_ID}" r:id="rId1"/></p:sldLayoutIdLst>'
        f"<p:txStyles>{title_style}{body_style}{other_style}</p:txStyles>"
        "</p:sldMaster>"
    )


def _slide_layout():
    return (
        f'{XML_HEADER}<p:sldLayout {PML_NS_DECLS} type="blank" preserve="1">'
        f'<p:cSld name="Blank">{_empty_shape_tree()}</p:cSld>'
        "<p:clrMapOvr><a:masterClrMapping/></p:clrMapOvr>"
        "</p:sldLayout>"
    )


def _font(tag, typeface, panose):
    return (
        f'<a:{tag}><a:latin typeface="{typeface}" panose="{panose}"/>'
        f'<a:ea typeface=""/><a:cs typeface=""/></a:{tag}>'
    )


def _gradient_fill():
    return (
        '<a:gradFill rotWithShape="1"><a:gsLst>'
        '<a:gs pos="0"><a:schemeClr val="phClr"><a:tint val="50000"/></a:schemeClr></a:gs>'
        '<a:gs pos="100000"><a:schemeClr val="phClr"><a:shade val="80000"/></a:schemeClr></a:gs>'
        '</a:gsLst><a:lin ang="5400000" scaled="1"/></a:gradFill>'
    )


def _theme():
    """
    Office-style theme: 12-colour scheme, major/minor fonts and a format
    scheme whose four style lists each carry three entries. Some viewers
    reject a theme with an empty style list.
    """
    colors = "".join(f"<a:{name}>{value}</a:{name}>" for name, value in THEME_COLORS)
    solid = '<a:solidFill><a:schemeClr val="phClr"/></a:solidFill>'
    lines = "".join(
        f'<a:ln w="{width}" cap="flat" cmpd="sng" algn="ctr">{solid}'
        '<a:prstDash val="solid"/><a:miter lim="800000"/></a:ln>'
        for width in (9525, 25400, 38100)
    )
    effects = "<a:effectStyle><a:effectLst/></a:effectStyle>" * 3
    return (
        f'{XML_HEADER}<a:theme xmlns:a="{NS_A}" name="Office Theme">'
        "<a:themeElements>"
        f'<a:clrScheme name="Office">{colors}</a:clrScheme>'
        '<a:fontScheme name="Office">'
        f"{_font('majorFont', *MAJOR_FONT)}{_font('minorFont', *MINOR_FONT)}"
        "</a:fontScheme>"
        '<a:fmtScheme name="Office">'
        f"<a:fillStyleLst>{solid}{_gradient_fill()}{_gradient_fill()}</a:fillStyleLst>"
        f"<a:lnStyleLst>{lines}</a:lnStyleLst>"
        f"<a:effectStyleLst>{effects}</a:effectStyleLst>"
        f"<a:bgFillStyleLst>{solid}{_gradient_fill()}{_gradient_fill()}</a:bgFillStyleLst>"
        "</a:fmtScheme>"
        "</a:themeElements>"
        "<a:objectDefaults/><a:extraClrSchemeLst/>"
        "</a:theme>"
    )


def _core_properties(title, author, now):
    stamp = now.strftime("%Y-%m-%dT%H:%M:%SZ")
    return (
        f"{XML_HEADER}"
        '<cp:coreProperties '
        'xmlns:cp="http://schemas.openxmlformats.org/package/2006/metadata/core-properties" '
        'xmlns:dc="http://purl.org/dc/elements/1.1/" '
        'xmlns:dcterms="http://purl.org/dc/terms/" '
        'xmlns:dcmitype="http://purl.org/dc/dcmitype/" '
        'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">'
        f"<dc:title>{xml_text(title)}</dc:title>"
        f"<dc:creator>{xml_text(author)}</dc:creator>"
        f"<cp:lastModifiedBy>{xml_text(author)}</cp:lastModifiedBy>"
        "<cp:revision>1</cp:revision>"
        f'<dcterms:created xsi:type="dcterms:W3CDTF">{stamp}</dcterms:created>'
        f'<dcterms:modified xsi:type="dcterms:W3CDTF">{stamp}</dcterms:modified>'
        "</cp:coreProperties>"
    )


def _app_properties():
    return (
        f"{XML_HEADER}"
        '<Properties xmlns="http://schemas.openxmlformats.org/officeDocument/2006/extended-properties" '
        'xmlns:vt="http://schemas.openxmlformats.org/officeDocument/2006/docPropsVTypes">'
        "<Application>pptgen</Application>"
        "</Properties>"
    )


def skeleton_parts(title="", author="", slide_size: SlideSize = DEFAULT_SLIDE_SIZE, now=None):
    """Return {part name: xml text} for every part of an empty presentation."""
    now = now or datetime.now(timezone.utc)
    return {
        "[Content_Types].xml": _content_types(),
        "_rels/.rels": _relationships([
            ("rId1", RT_OFFICE_DOCUMENT, "ppt/presentation.xml"),
            ("rId2", RT_CORE_PROPERTIES, "docProps/core.xml"),
            ("rId3", RT_EXTENDED_PROPERTIES, "docProps/app.xml"),
        ]),
        "docProps/core.xml": _core_properties(title, author, now),
        "docProps/app.xml": _app_properties(),
        "ppt/presentation.xml": _presentation(slide_size),
        "ppt/_rels/presentation.xml.rels": _relationships([
            ("rId1", RT_SLIDE_MASTER, "slideMasters/slideMaster1.xml"),
            ("rId2", RT_THEME, "theme/theme1.xml"),
            ("rId3", RT_PRES_PROPS, "presProps.xml"),
            ("rId4", RT_VIEW_PROPS, "viewProps.xml"),
            ("rId5", RT_TABLE_STYLES, "tableStyles.xml"),
        ]),
        "ppt/slideMasters/slideMaster1.xml": _slide_master(),
        "ppt/slideMasters/_rels/slideMaster1.xml.rels": _relationships([
            ("rId1", RT_SLIDE_LAYOUT, "../slideLayouts/slideLayout1.xml"),
            ("rId2", RT_THEME, "../theme/theme1.xml"),
        ]),
        "ppt/slideLayouts/slideLayout1.xml": _slide_layout(),
        "ppt/slideLayouts/_rels/slideLayout1.xml.rels": _relationships([
            ("rId1", RT_SLIDE_MASTER, "../slideMasters/slideMaster1.xml"),
        ]),
        "ppt/theme/theme1.xml": _theme(),
        "ppt/presProps.xml": f"{XML_HEADER}<p:presentationPr {PML_NS_DECLS}/>",
        "ppt/viewProps.xml": (
            f"{XML_HEADER}<p:viewPr {PML_NS_DECLS}>"
            '<p:normalViewPr><p:restoredLeft sz="15620"/><p:restoredTop sz="94660"/></p:normalViewPr>'
            '<p:gridSpacing cx="76200" cy="76200"/>'
            "</p:viewPr>"
        ),
        "ppt/tableStyles.xml": (
            f'{XML_HEADER}<a:tblStyleLst xmlns:a="{NS_A}" def="{{5C22544A-7EE6-4342-B048-85BDC9FD1C3A}}"/>'
        ),
    }


def build_skeleton(title="", author="", slide_size: SlideSize = DEFAULT_SLIDE_SIZE) -> bytes:
    """Zip the skeleton parts into an in-memory .pptx blob."""
    buffer = io.BytesIO()
    with ZipFile(buffer, "w", ZIP_DEFLATED) as zout:
        for name, xml in skeleton_parts(title, author, slide_size).items():
            zout.writestr(name, xml.encode("utf-8"))
    return buffer.getvalue()
