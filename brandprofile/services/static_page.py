"""
Page accessor over a captured HTML document.

A capture is plain HTML in which the layout step recorded each element's box
as `data-rect="x y width height"`. Styles are resolved from `<style>` blocks
(document order, no specificity), presentation attributes and inline `style`
attributes, with `var()` references and inheritance applied. External
stylesheets are only readable when their text is passed in `stylesheets`;
otherwise they report themselves as inaccessible, like a cross-origin sheet.
"""
import re
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import urljoin

import tinycss2
from bs4 import BeautifulSoup, Tag

from brandprofile.exceptions import StylesheetAccessError
from brandprofile.services.html_utils import SVG_STYLE_PROPS, css_declarations, parse_style_attr, soupify
from brandprofile.services.normalizer import to_px
from brandprofile.services.page_access import Box, SvgNodeStyle, SvgSnapshot

VAR_RE = re.compile(r"var\(\s*(--[\w-]+)\s*(?:,\s*([^()]*(?:\([^()]*\))?[^()]*))?\)")
GROUPING_AT_RULES = {"media", "supports", "layer", "container", "document"}

INHERITED_PROPS = {
    "color", "font-family", "font-size", "font-weight",
    "fill", "stroke", "stroke-width", "stroke-dasharray", "stroke-dashoffset",
    "stroke-linecap", "stroke-linejoin", "fill-opacity", "stroke-opacity",
}

INITIAL_VALUES = {
    "color": "rgb(0, 0, 0)",
    "background-color": "rgba(0, 0, 0, 0)",
    "border-top-width": "0px",
    "border-radius": "0px",
    "font-family": "serif",
    "font-size": "16px",
    "font-weight": "400",
    "box-shadow": "none",
    "fill": "rgb(0, 0, 0)",
    "stroke": "none",
    "stroke-width": "1px",
    "opacity": "1",
    "fill-opacity": "1",
    "stroke-opacity": "1",
}

# lxml lowercases names; SVG needs these back in camelCase to render
SVG_NAME_CASE = {
    "viewbox": "viewBox",
    "preserveaspectratio": "preserveAspectRatio",
    "gradientunits": "gradientUnits",
    "gradienttransform": "gradientTransform",
    "clippathunits": "clipPathUnits",
    "lineargradient": "linearGradient",
    "radialgradient": "radialGradient",
    "clippath": "clipPath",
}


class StaticRule:
    def __init__(self, kind: str, selector: str, content: Optional[list] = None):
        self.kind = kind
        self.selector = selector
        self._content = content or []
        self._declared: Optional[Dict[str, str]] = None

    def declarations(self) -> Dict[str, str]:
        if self._declared is None:
            self._declared = css_declarations(self._content, strict=True)
        return self._declared


class StaticSheet:
    def __init__(self, href: Optional[str], css_text: Optional[str]):
        self.href = href
        self._css_text = css_text
        self._rules: Optional[List[StaticRule]] = None

    def rules(self) -> List[StaticRule]:
        if self._css_text is None:
            raise StylesheetAccessError(f"stylesheet {self.href} was not captured")
        if self._rules is None:
            self._rules = parse_css_rules(self._css_text)
        return self._rules


def parse_css_rules(css) -> List[StaticRule]:
    """Flatten a stylesheet into style / font-face rules; grouping at-rules are descended into.

    Rules the CSS grammar rejects are dropped, as a browser drops them from cssRules.
    """
    if isinstance(css, str):
        nodes = tinycss2.parse_stylesheet(css, skip_comments=True, skip_whitespace=True)
    else:
        nodes = tinycss2.parse_rule_list(css, skip_comments=True, skip_whitespace=True)
    rules: List[StaticRule] = []
    for node in nodes:
        if node.type == "qualified-rule":
            rules.append(StaticRule("style", tinycss2.serialize(node.prelude).strip(), node.content))
        elif node.type == "at-rule":
            keyword = node.lower_at_keyword
            prelude = f"@{keyword} {tinycss2.serialize(node.prelude).strip()}".strip()
            if keyword == "font-face":
                rules.append(StaticRule("font-face", prelude, node.content))
            elif keyword in GROUPING_AT_RULES and node.content is not None:
                rules.extend(parse_css_rules(node.content))
            else:
                rules.append(StaticRule("other", prelude))
    return rules


class StaticPageAccessor:
    def __init__(self, html: str, base_url: Optional[str] = None,
                 stylesheets: Optional[Dict[str, str]] = None):
        self.soup = soupify(html)
        self.base_url = base_url
        self._sheets: List[StaticSheet] = []
        for node in self.soup.find_all(["style", "link"]):
            if node.name == "style":
                self._sheets.append(StaticSheet(None, node.get_text()))
            elif "stylesheet" in (node.get("rel") or []):
                href = self.resolved_url(node, "href")
                self._sheets.append(StaticSheet(href, (stylesheets or {}).get(href)))
        self._declared: Dict[int, Dict[str, str]] = {}

    # ---- document ----

    def stylesheets(self) -> List[StaticSheet]:
        return self._sheets

    def select_unique(self, queries: Sequence[Tuple[str, int]]) -> List[Tag]:
        picks: List[Tag] = []
        seen = set()
        for selector, limit in queries:
            for el in self.soup.select(selector, limit=limit):
                if id(el) not in seen:
                    seen.add(id(el))
                    picks.append(el)
        return picks

    def query(self, selector: str) -> Optional[Tag]:
        return self.soup.select_one(selector)

    def query_all(self, selector: str) -> List[Tag]:
        return self.soup.select(selector)

    def document_element(self) -> Optional[Tag]:
        return self.soup.html or self.soup.find()

    def body(self) -> Optional[Tag]:
        return self.soup.body

    # ---- elements ----

    def tag_name(self, el: Tag) -> str:
        return el.name or ""

    def class_name(self, el: Tag) -> str:
        cls = el.get("class")
        if isinstance(cls, list):
            return " ".join(cls)
        return cls or ""

    def attribute(self, el: Tag, name: str) -> Optional[str]:
        value = el.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    def text_content(self, el: Tag) -> str:
        return el.get_text()

    def matches(self, el: Tag, selector: str) -> bool:
        return el.css.match(selector)

    def closest(self, el: Tag, selector: str) -> Optional[Tag]:
        return el.css.closest(selector)

    def resolved_url(self, el: Tag, attr: str) -> Optional[str]:
        value = el.get(attr)
        if not value:
            return None
        return urljoin(self.base_url, value) if self.base_url else value

    def bounding_box(self, el: Tag) -> Box:
        raw = (el.get("data-rect") or "").split()
        try:
            x, y, w, h = (float(v) for v in raw)
        except ValueError:
            return Box()
        return Box(x=x, y=y, width=w, height=h)

    def resolve_color(self, value: str) -> Optional[str]:
        return None  # no canvas to round-trip named colors through

    # ---- styles ----

    def _own_declarations(self, el: Tag) -> Dict[str, str]:
        key = id(el)
        if key in self._declared:
            return self._declared[key]
        decls: Dict[str, str] = {}
        for prop in SVG_STYLE_PROPS:
            if el.get(prop):
                decls[prop] = el[prop]
        for sheet in self._sheets:
            try:
                rules = sheet.rules()
            except StylesheetAccessError:
                continue
            for rule in rules:
                if rule.kind != "style":
                    continue
                try:
                    if el.css.match(rule.selector):
                        decls.update(rule.declarations())
                except Exception:
                    continue  # selectors soupsieve cannot evaluate (pseudo-elements, :hover, ...)
        decls.update(parse_style_attr(el.get("style")))
        self._declared[key] = decls
        return decls

    @staticmethod
    def _parent(el: Tag) -> Optional[Tag]:
        parent = el.parent
        if isinstance(parent, Tag) and not isinstance(parent, BeautifulSoup):
            return parent
        return None

    def _custom_property(self, el: Optional[Tag], name: str) -> Optional[str]:
        while el is not None:
            value = self._own_declarations(el).get(name)
            if value is not None:
                return value
            el = self._parent(el)
        return None

    def _resolve_vars(self, el: Tag, value: str, depth: int = 0) -> str:
        if "var(" not in value or depth > 8:
            return value

        def sub(m: re.Match) -> str:
            found = self._custom_property(el, m.group(1))
            if found is None:
                found = (m.group(2) or "").strip()
            return found

        return self._resolve_vars(el, VAR_RE.sub(sub, value), depth + 1)

    def _computed(self, el: Optional[Tag], prop: str) -> str:
        if el is None:
            return INITIAL_VALUES.get(prop, "")
        value = self._own_declarations(el).get(prop)
        if value is not None:
            value = self._resolve_vars(el, value).strip()
        if not value or value in ("inherit", "unset"):
            if prop in INHERITED_PROPS and self._parent(el) is not None:
                return self._computed(self._parent(el), prop)
            value = INITIAL_VALUES.get(prop, "")
        if value.lower() == "currentcolor" and prop != "color":
            return self._computed(el, "color")
        if prop == "border-top-color" and not value:
            return self._computed(el, "color")
        if prop == "font-size":
            parent = self._parent(el)
            parent_px = to_px(self._computed(parent, "font-size")) if parent is not None else None
            px = to_px(value, 16.0, parent_px)
            return f"{px:g}px" if px is not None else value
        return value

    def computed_style(self, el: Tag, props: Sequence[str]) -> Dict[str, str]:
        return {prop: self._computed(el, prop) for prop in props}

    def svg_snapshot(self, el: Tag, props: Sequence[str]) -> SvgSnapshot:
        nodes = []
        for node in [el] + el.find_all(True):
            attrs = {k: (" ".join(v) if isinstance(v, list) else v) for k, v in node.attrs.items()}
            nodes.append(SvgNodeStyle(
                attributes=attrs,
                inline_style=parse_style_attr(node.get("style")),
                computed=self.computed_style(node, props),
            ))
        markup = str(el)
        for lower, proper in SVG_NAME_CASE.items():
            markup = re.sub(rf"(?<=[<\s/]){lower}(?=[\s=>/])", proper, markup)
        return SvgSnapshot(markup=markup, nodes=nodes)
