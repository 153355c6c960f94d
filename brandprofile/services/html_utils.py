import re
from typing import Dict, List, Optional
from urllib.parse import quote

import tinycss2
from bs4 import BeautifulSoup, Tag

from brandprofile.services.page_access import SvgNodeStyle

SVG_NS = "http://www.w3.org/2000/svg"

SVG_STYLE_PROPS = [
    "fill",
    "stroke",
    "color",
    "stop-color",
    "flood-color",
    "lighting-color",
    "stroke-width",
    "stroke-dasharray",
    "stroke-dashoffset",
    "stroke-linecap",
    "stroke-linejoin",
    "opacity",
    "fill-opacity",
    "stroke-opacity",
]

# computed values an SVG node has when nothing styles it
SVG_DEFAULTS = {
    "fill": "rgb(0, 0, 0)",
    "stroke": "none",
    "stroke-width": "1px",
    "opacity": "1",
    "fill-opacity": "1",
    "stroke-opacity": "1",
}

TITLE_SPLIT_RE = re.compile(r"\s+[|\-–—:·]\s+")

def soupify(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")

def brand_name_from(title: Optional[str], site_name: Optional[str]) -> Optional[str]:
    if site_name and site_name.strip():
        return site_name.strip()
    if title and title.strip():
        return TITLE_SPLIT_RE.split(title.strip())[0].strip() or None
    return None

def css_declarations(source, strict: bool = False, keep_important: bool = False) -> Dict[str, str]:
    """Declarations of a rule body or a style attribute (text or tinycss2 tokens).

    With `strict`, a malformed declaration raises ValueError instead of being dropped.
    """
    out: Dict[str, str] = {}
    for node in tinycss2.parse_declaration_list(source, skip_comments=True, skip_whitespace=True):
        if node.type == "error":
            if strict:
                raise ValueError(f"malformed declaration: {node.message}")
            continue
        if node.type != "declaration":
            continue
        name = node.name if node.name.startswith("--") else node.lower_name
        value = tinycss2.serialize(node.value).strip()
        out[name] = f"{value} !important" if keep_important and node.important else value
    return out

def parse_style_attr(style: Optional[str]) -> Dict[str, str]:
    return css_declarations(style or "", keep_important=True)

def format_style_attr(decls: Dict[str, str]) -> str:
    return "; ".join(f"{k}: {v}" for k, v in decls.items())

def _set_style(el: Tag, prop: str, value: str) -> None:
    decls = parse_style_attr(el.get("style"))
    decls[prop] = f"{value} !important"
    el["style"] = format_style_attr(decls)

def resolve_svg_styles(markup: str, nodes: List[SvgNodeStyle]) -> str:
    """
    Return a copy of an inline SVG whose styling survives without the page's stylesheets.

    Attributes that reference CSS variables are replaced by their computed value
    as an inline style. Other properties are inlined only when they were set
    explicitly or differ from the SVG default, which keeps the output small.
    `nodes` lists the root and then every descendant in document order.
    """
    soup = BeautifulSoup(markup, "xml")
    root = soup.find("svg") or soup.find()
    if root is None:
        return markup
    elements = [root] + root.find_all(True)

    for el, node in zip(elements, nodes):
        for prop in SVG_STYLE_PROPS:
            attr_value = node.attributes.get(prop)
            value = (node.computed.get(prop) or "").strip()
            if attr_value and "var(" in attr_value:
                del el[prop]
                if value and value != "none":
                    _set_style(el, prop, value)
            elif value:
                explicit = prop in node.attributes or prop in node.inline_style
                different = prop in SVG_DEFAULTS and value != SVG_DEFAULTS[prop]
                if explicit or different:
                    _set_style(el, prop, value)

    if not root.get("xmlns"):
        root["xmlns"] = SVG_NS
    return str(root)

def svg_data_uri(markup: str) -> str:
    return "data:image/svg+xml;utf8," + quote(markup, safe="-_.!~*'()")
