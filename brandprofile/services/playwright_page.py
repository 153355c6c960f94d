"""
Page accessor over a live Playwright page (sync API).

The caller owns the browser: it launches it, navigates, waits for readiness
and hands over a `Page`. Everything here is read-only `evaluate` work; nothing
is written to the DOM.
"""
from typing import Any, Dict, List, Optional, Sequence, Tuple

from playwright.sync_api import ElementHandle, Page

from brandprofile.exceptions import StylesheetAccessError
from brandprofile.services.page_access import Box, SvgNodeStyle, SvgSnapshot

STYLESHEETS_JS = """
() => {
    const kindOf = rule => {
        if (rule.type === CSSRule.STYLE_RULE) return 'style';
        if (rule.type === CSSRule.FONT_FACE_RULE) return 'font-face';
        return 'other';
    };
    const flatten = (rules, out) => {
        for (const rule of Array.from(rules)) {
            try {
                if (rule.cssRules && rule.type !== CSSRule.STYLE_RULE) {
                    flatten(rule.cssRules, out);
                    continue;
                }
                const decls = {};
                if (rule.style) {
                    for (const name of Array.from(rule.style)) {
                        decls[name] = rule.style.getPropertyValue(name);
                    }
                    for (const name of ['margin', 'padding', 'gap', 'border-radius', 'font', 'border-color']) {
                        const v = rule.style.getPropertyValue(name);
                        if (v) decls[name] = v;
                    }
                }
                out.push({kind: kindOf(rule), declarations: decls});
            } catch (e) {
                out.push({kind: 'other', error: String(e)});
            }
        }
        return out;
    };
    return Array.from(document.styleSheets).map(sheet => {
        try {
            const rules = sheet.cssRules;
            if (!rules) return {href: sheet.href, error: 'no rules exposed'};
            return {href: sheet.href, rules: flatten(rules, [])};
        } catch (e) {
            return {href: sheet.href, error: String(e)};
        }
    });
}
"""

SELECT_UNIQUE_JS = """
(queries) => {
    const picks = [];
    const seen = new Set();
    for (const [selector, limit] of queries) {
        for (const el of Array.from(document.querySelectorAll(selector)).slice(0, limit)) {
            if (!seen.has(el)) {
                seen.add(el);
                picks.push(el);
            }
        }
    }
    return picks;
}
"""

COMPUTED_STYLE_JS = """
(el, props) => {
    const computed = window.getComputedStyle(el);
    const result = {};
    props.forEach(p => { result[p] = computed.getPropertyValue(p); });
    return result;
}
"""

BOX_JS = """
el => {
    const r = el.getBoundingClientRect();
    return {x: r.left, y: r.top, width: r.width, height: r.height};
}
"""

SVG_SNAPSHOT_JS = """
(svg, props) => {
    const nodes = [svg, ...svg.querySelectorAll('*')].map(el => {
        const computed = getComputedStyle(el);
        const attributes = {};
        for (const a of Array.from(el.attributes)) attributes[a.name] = a.value;
        const inline = {};
        for (const name of Array.from(el.style || [])) inline[name] = el.style.getPropertyValue(name);
        const resolved = {};
        props.forEach(p => { resolved[p] = computed.getPropertyValue(p); });
        return {attributes, inline_style: inline, computed: resolved};
    });
    return {markup: new XMLSerializer().serializeToString(svg), nodes};
}
"""

CANVAS_COLOR_JS = """
(value) => {
    const ctx = document.createElement('canvas').getContext('2d');
    if (!ctx) return null;
    ctx.fillStyle = '#010203';
    ctx.fillStyle = value;
    const out = ctx.fillStyle;
    return out === '#010203' ? null : out;
}
"""


class PlaywrightRule:
    def __init__(self, payload: Dict[str, Any]):
        self.kind = payload.get("kind") or "other"
        self._payload = payload

    def declarations(self) -> Dict[str, str]:
        if self._payload.get("error"):
            raise ValueError(self._payload["error"])
        return dict(self._payload.get("declarations") or {})


class PlaywrightSheet:
    def __init__(self, payload: Dict[str, Any]):
        self.href = payload.get("href")
        self._payload = payload

    def rules(self) -> List[PlaywrightRule]:
        if self._payload.get("error"):
            raise StylesheetAccessError(self._payload["error"])
        return [PlaywrightRule(r) for r in self._payload.get("rules") or []]


class PlaywrightPageAccessor:
    def __init__(self, page: Page):
        self.page = page

    def stylesheets(self) -> List[PlaywrightSheet]:
        return [PlaywrightSheet(p) for p in self.page.evaluate(STYLESHEETS_JS)]

    def select_unique(self, queries: Sequence[Tuple[str, int]]) -> List[ElementHandle]:
        handle = self.page.evaluate_handle(SELECT_UNIQUE_JS, [list(q) for q in queries])
        try:
            props = handle.get_properties()
            indexes = sorted((k for k in props if k.isdigit()), key=int)
            picks = [props[k].as_element() for k in indexes]
            return [el for el in picks if el is not None]
        finally:
            handle.dispose()

    def query(self, selector: str) -> Optional[ElementHandle]:
        return self.page.query_selector(selector)

    def query_all(self, selector: str) -> List[ElementHandle]:
        return self.page.query_selector_all(selector)

    def document_element(self) -> Optional[ElementHandle]:
        return self.page.query_selector("html")

    def body(self) -> Optional[ElementHandle]:
        return self.page.query_selector("body")

    def computed_style(self, el: ElementHandle, props: Sequence[str]) -> Dict[str, str]:
        return el.evaluate(COMPUTED_STYLE_JS, list(props))

    def bounding_box(self, el: ElementHandle) -> Box:
        r = el.evaluate(BOX_JS)
        return Box(x=r["x"], y=r["y"], width=r["width"], height=r["height"])

    def tag_name(self, el: ElementHandle) -> str:
        return el.evaluate("el => el.tagName.toLowerCase()")

    def class_name(self, el: ElementHandle) -> str:
        # SVG elements expose className as an SVGAnimatedString
        return el.evaluate("el => String(el.className && el.className.baseVal !== undefined ? el.className.baseVal : el.className || '')")

    def attribute(self, el: ElementHandle, name: str) -> Optional[str]:
        return el.get_attribute(name)

    def text_content(self, el: ElementHandle) -> str:
        return el.text_content() or ""

    def matches(self, el: ElementHandle, selector: str) -> bool:
        return el.evaluate("(el, s) => el.matches(s)", selector)

    def closest(self, el: ElementHandle, selector: str) -> Optional[ElementHandle]:
        handle = el.evaluate_handle("(el, s) => el.closest(s)", selector)
        found = handle.as_element()
        if found is None:
            handle.dispose()
        return found

    def resolved_url(self, el: ElementHandle, attr: str) -> Optional[str]:
        # the DOM property (el.src / el.href) is already absolute
        return el.evaluate("(el, a) => el[a] || el.getAttribute(a)", attr) or None

    def svg_snapshot(self, el: ElementHandle, props: Sequence[str]) -> SvgSnapshot:
        raw = el.evaluate(SVG_SNAPSHOT_JS, list(props))
        return SvgSnapshot(
            markup=raw["markup"],
            nodes=[SvgNodeStyle(**n) for n in raw["nodes"]],
        )

    def resolve_color(self, value: str) -> Optional[str]:
        return self.page.evaluate(CANVAS_COLOR_JS, value)
