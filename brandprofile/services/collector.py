"""
In-page signal collection.

`collect_branding` walks a rendered page through a `PageAccessor` and returns a
single immutable `RawBrandingRecord`. It reads computed styles only, samples a
bounded set of elements, and never lets one unreadable stylesheet, rule or
element abort the pass: faults are recorded as `RuleSkip` entries or the
affected value falls back to None.
"""
import logging
import re
from typing import Dict, List, Optional, Tuple

from brandprofile.config import settings
from brandprofile.exceptions import StylesheetAccessError
from brandprofile.models.schemas import (
    BackgroundCandidate,
    CSSData,
    FontFace,
    FontSizes,
    FontStacks,
    ImageRef,
    Location,
    LogoCandidate,
    RawBrandingRecord,
    RawTypography,
    Rect,
    RuleSkip,
    SnapshotColors,
    SnapshotTypography,
    StyleSnapshot,
)
from brandprofile.services.colors import hexify, is_transparent, relative_luminance
from brandprofile.services.html_utils import SVG_STYLE_PROPS, brand_name_from, resolve_svg_styles, svg_data_uri
from brandprofile.services.normalizer import (
    clean_text,
    font_family_from_shorthand,
    split_font_stack,
    to_px,
    unique_keep_order,
)
from brandprofile.services.page_access import Element, PageAccessor

logger = logging.getLogger(__name__)

LOGO_IMG_SELECTOR = 'header img, .site-logo img, img[alt*=logo i], img[src*="logo"]'
BUTTON_SELECTOR = 'button, [role=button], a.button, a.btn, [class*="btn"], [class*="cta"]'
INPUT_SELECTOR = 'input, select, textarea, [class*="form-control"]'
TEXT_SELECTOR = "h1, h2, h3, p, a"

HEADER_LINK_LOGO_SELECTOR = (
    'header a img, header a svg, nav a img, nav a svg, [role="banner"] a img, '
    '[role="banner"] a svg, .header a img, .header a svg'
)
HEADER_REGION_SELECTOR = 'header, nav, [role="banner"]'
LOGO_EXCLUDED_SECTIONS = '[class*="testimonial"], [class*="client"], [class*="partner"]'
APP_ROOT_SELECTORS = ["#__next", "#root", "#app", "#__nuxt", "[data-reactroot]", "main"]
BACKGROUND_REGION_SELECTORS = ["header", "main", "section", "footer"]

COLOR_RULE_PROPS = ["color", "background-color", "border-color", "fill", "stroke"]
FONT_RULE_PROPS = ["font-family", "font"]
RADIUS_RULE_PROPS = [
    "border-radius",
    "border-top-left-radius",
    "border-top-right-radius",
    "border-bottom-left-radius",
    "border-bottom-right-radius",
]
SPACING_RULE_PROPS = [
    "margin", "margin-top", "margin-right", "margin-bottom", "margin-left",
    "padding", "padding-top", "padding-right", "padding-bottom", "padding-left",
    "gap", "row-gap", "column-gap",
]

SNAPSHOT_PROPS = [
    "color",
    "background-color",
    "border-top-color",
    "border-top-width",
    "border-radius",
    "font-family",
    "font-size",
    "font-weight",
    "box-shadow",
]

DARK_CLASSES = {"dark", "dark-mode", "theme-dark"}
DARK_ATTRIBUTES = ["data-theme", "data-color-mode", "data-bs-theme", "data-mode"]
CTA_CLASS_RE = re.compile(r"(^|[\s_-])cta([\s_-]|$)")

SCRIPT_FINGERPRINTS = {
    "/_next/": "nextjs",
    "/_nuxt/": "nuxt",
    "gatsby": "gatsby",
    "wp-content": "wordpress",
    "wp-includes": "wordpress",
    "cdn.shopify.com": "shopify",
    "squarespace": "squarespace",
    "webflow": "webflow",
    "wixstatic": "wix",
    "framer": "framer",
    "/astro/": "astro",
    "svelte": "svelte",
    "bootstrap": "bootstrap",
    "tailwind": "tailwind",
}
CSS_VAR_FINGERPRINTS = {
    "--tw-": "tailwind",
    "--bs-": "bootstrap",
    "--chakra-": "chakra",
    "--mui": "mui",
    "--mantine-": "mantine",
    "--ant-": "antd",
    "--radix-": "radix",
}


# ---------- Stylesheets ----------

def collect_css_data(page: PageAccessor, root_fs: Optional[float] = None,
                     body_fs: Optional[float] = None) -> CSSData:
    colors: List[str] = []
    radii: List[float] = []
    spacings: List[float] = []
    css_vars: Dict[str, str] = {}
    fonts: List[str] = []
    font_faces: List[FontFace] = []
    skipped: List[RuleSkip] = []

    def push_color(value: Optional[str]) -> None:
        h = hexify(value)
        if h:
            colors.append(h)

    for sheet in page.stylesheets():
        href = getattr(sheet, "href", None)
        try:
            rules = sheet.rules()
        except StylesheetAccessError as e:
            logger.debug("Skipping stylesheet %s: %s", href, e)
            skipped.append(RuleSkip(sheet=href, reason=str(e) or "stylesheet not readable"))
            continue

        for idx, rule in enumerate(rules):
            try:
                decls = rule.declarations()
                if rule.kind == "style":
                    for name, value in decls.items():
                        if name.startswith("--"):
                            css_vars[name] = value.strip()
                            push_color(css_vars[name])
                    for prop in COLOR_RULE_PROPS:
                        push_color(decls.get(prop))
                    for prop in FONT_RULE_PROPS:
                        value = decls.get(prop)
                        if prop == "font":
                            # browsers also expand the shorthand into font-family
                            if decls.get("font-family"):
                                continue
                            value = font_family_from_shorthand(value)
                        fonts.extend(split_font_stack(value))
                    for prop in RADIUS_RULE_PROPS:
                        v = to_px(decls.get(prop), root_fs, body_fs)
                        if v:
                            radii.append(v)
                    for prop in SPACING_RULE_PROPS:
                        v = to_px(decls.get(prop), root_fs, body_fs)
                        if v:
                            spacings.append(v)
                elif rule.kind == "font-face":
                    family = (decls.get("font-family") or "").replace('"', "").replace("'", "").strip()
                    font_faces.append(FontFace(family=family, src=decls.get("src") or ""))
                    if family:
                        fonts.append(family)
            except Exception as e:
                logger.debug("Skipping rule %s in %s: %s", idx, href, e)
                skipped.append(RuleSkip(sheet=href, rule_index=idx, reason=str(e) or type(e).__name__))

    return CSSData(
        colors=unique_keep_order(colors),
        radii=radii,
        spacings=spacings,
        css_vars=css_vars,
        fonts=fonts,
        font_faces=font_faces,
        skipped=skipped,
    )


# ---------- Element sampling ----------

def sample_elements(page: PageAccessor) -> List[Element]:
    return page.select_unique([
        (LOGO_IMG_SELECTOR, settings.SAMPLE_LOGO_IMAGES),
        (BUTTON_SELECTOR, settings.SAMPLE_BUTTONS),
        (INPUT_SELECTOR, settings.SAMPLE_INPUTS),
        (TEXT_SELECTOR, settings.SAMPLE_TEXT),
    ])

def _has_cta_indicator(page: PageAccessor, el: Element, classes: str) -> Optional[bool]:
    if page.attribute(el, "data-cta") is not None:
        return True
    ident = (page.attribute(el, "id") or "").lower()
    if CTA_CLASS_RE.search(classes) or CTA_CLASS_RE.search(ident):
        return True
    return None

def _color(page: PageAccessor, raw: Optional[str]) -> Optional[str]:
    """Computed colors normalized to hex; kept raw when even the page cannot parse them."""
    if not raw:
        return None
    return hexify(raw, page.resolve_color) or raw

def style_snapshot(page: PageAccessor, el: Element, root_fs: Optional[float] = None,
                   body_fs: Optional[float] = None) -> StyleSnapshot:
    cs = page.computed_style(el, SNAPSHOT_PROPS)
    box = page.bounding_box(el)
    classes = (page.class_name(el) or "").lower()
    stack = split_font_stack(cs.get("font-family"))
    try:
        weight = int(float(cs.get("font-weight") or ""))
    except ValueError:
        weight = None
    shadow = (cs.get("box-shadow") or "").strip()

    return StyleSnapshot(
        tag=page.tag_name(el).lower(),
        classes=classes,
        text=clean_text(page.text_content(el), settings.SNAPSHOT_TEXT_LIMIT),
        rect=Rect(w=box.width, h=box.height),
        colors=SnapshotColors(
            text=_color(page, cs.get("color")),
            background=_color(page, cs.get("background-color")),
            border=_color(page, cs.get("border-top-color")),
            border_width=to_px(cs.get("border-top-width"), root_fs, body_fs),
        ),
        typography=SnapshotTypography(
            family=stack[0] if stack else None,
            font_stack=stack,
            size=cs.get("font-size") or None,
            weight=weight,
        ),
        radius=to_px(cs.get("border-radius"), root_fs, body_fs),
        is_button=page.matches(el, BUTTON_SELECTOR),
        is_input=page.matches(el, INPUT_SELECTOR),
        is_link=page.tag_name(el).lower() == "a",
        has_cta_indicator=_has_cta_indicator(page, el, classes),
        shadow=shadow if shadow and shadow != "none" else None,
    )


# ---------- Images & logo ----------

def _svg_data_uri(page: PageAccessor, el: Element) -> str:
    snap = page.svg_snapshot(el, SVG_STYLE_PROPS)
    return svg_data_uri(resolve_svg_styles(snap.markup, snap.nodes))

def _logo_src(page: PageAccessor, el: Element) -> Tuple[Optional[str], bool]:
    if page.tag_name(el).lower() == "svg":
        return _svg_data_uri(page, el), True
    return page.resolved_url(el, "src"), False

def _best_positioned(page: PageAccessor, elements: List[Element]) -> Optional[Element]:
    """Header containment first, then the top-most element."""
    best = None
    for el in elements:
        if best is None:
            best = el
            continue
        el_in_header = page.closest(el, HEADER_REGION_SELECTOR) is not None
        best_in_header = page.closest(best, HEADER_REGION_SELECTOR) is not None
        if el_in_header != best_in_header:
            if el_in_header:
                best = el
            continue
        if page.bounding_box(el).top < page.bounding_box(best).top:
            best = el
    return best

def _logo_img_candidates(page: PageAccessor) -> List[Element]:
    out = []
    for img in page.query_all("img"):
        alt = page.attribute(img, "alt") or ""
        src = page.attribute(img, "src") or ""
        if not ("logo" in alt.lower() or "logo" in src.lower()
                or page.closest(img, '[class*="logo"]') is not None):
            continue
        if page.closest(img, LOGO_EXCLUDED_SECTIONS) is not None:
            continue
        out.append(img)
    return out

def _logo_svg_candidates(page: PageAccessor) -> List[Element]:
    out = []
    for svg in page.query_all("svg"):
        ident = (page.attribute(svg, "id") or "").lower()
        classes = (page.class_name(svg) or "").lower()
        if "logo" not in ident and "logo" not in classes:
            continue
        if page.closest(svg, LOGO_EXCLUDED_SECTIONS) is not None:
            continue
        out.append(svg)
    return out

def _logo_candidate(page: PageAccessor, el: Element) -> Optional[LogoCandidate]:
    src, is_svg = _logo_src(page, el)
    if not src:
        return None
    box = page.bounding_box(el)
    return LogoCandidate(
        src=src,
        alt=page.attribute(el, "alt") or page.attribute(el, "aria-label") or "",
        is_svg=is_svg,
        is_visible=box.width > 0 and box.height > 0,
        in_header=page.closest(el, HEADER_REGION_SELECTOR) is not None,
        location=Location(top=box.y, left=box.x, width=box.width, height=box.height),
    )

def find_images(page: PageAccessor) -> Tuple[List[ImageRef], List[LogoCandidate]]:
    images: List[ImageRef] = []

    def push(src: Optional[str], kind: str) -> None:
        if src:
            images.append(ImageRef(type=kind, src=src))

    icon = page.query('link[rel*="icon" i]')
    if icon is not None:
        push(page.resolved_url(icon, "href"), "favicon")
    og = page.query('meta[property="og:image" i]')
    if og is not None:
        push(page.attribute(og, "content"), "og")
    tw = page.query('meta[name="twitter:image" i]')
    if tw is not None:
        push(page.attribute(tw, "content"), "twitter")

    header_logo = page.query(HEADER_LINK_LOGO_SELECTOR)
    img_candidates = _logo_img_candidates(page)
    svg_candidates = _logo_svg_candidates(page)

    if header_logo is not None:
        src, is_svg = _logo_src(page, header_logo)
        push(src, "logo-svg" if is_svg else "logo")
    else:
        logo_img = _best_positioned(page, img_candidates)
        if logo_img is not None:
            push(page.resolved_url(logo_img, "src"), "logo")
        svg_logo = _best_positioned(page, svg_candidates)
        if svg_logo is not None:
            push(_svg_data_uri(page, svg_logo), "logo-svg")

    # every plausible logo, for the classifier to choose from
    logo_candidates: List[LogoCandidate] = []
    seen = set()
    ordered = ([header_logo] if header_logo is not None else []) + img_candidates + svg_candidates
    for el in ordered:
        if len(logo_candidates) >= settings.MAX_LOGO_CANDIDATES:
            break
        cand = _logo_candidate(page, el)
        if cand is None or cand.src in seen:
            continue
        seen.add(cand.src)
        logo_candidates.append(cand.model_copy(update={"position": len(logo_candidates)}))

    return images, logo_candidates


# ---------- Page-level signals ----------

def _opaque_background(page: PageAccessor, el: Optional[Element]) -> Optional[str]:
    if el is None:
        return None
    bg = page.computed_style(el, ["background-color"]).get("background-color")
    if not bg or is_transparent(bg) or hexify(bg, page.resolve_color) is None:
        return None
    return bg

def detect_color_scheme(page: PageAccessor) -> Tuple[str, Optional[str]]:
    """Return (scheme, page background) for the rendered page."""
    html = page.document_element()
    body = page.body()

    explicit_dark = False
    for el in (html, body):
        if el is None:
            continue
        tokens = set((page.class_name(el) or "").lower().split())
        if tokens & DARK_CLASSES:
            explicit_dark = True
        for attr in DARK_ATTRIBUTES:
            if (page.attribute(el, attr) or "").strip().lower() == "dark":
                explicit_dark = True

    background = _opaque_background(page, body) or _opaque_background(page, html)
    if background is None:
        for selector in APP_ROOT_SELECTORS:
            background = _opaque_background(page, page.query(selector))
            if background:
                break

    if explicit_dark:
        return "dark", background
    lum = relative_luminance(hexify(background, page.resolve_color)) if background else None
    if lum is not None and lum < 0.4:
        return "dark", background
    return "light", background

def collect_background_candidates(page: PageAccessor) -> List[BackgroundCandidate]:
    out: List[BackgroundCandidate] = []
    targets = [("body", page.body()), ("html", page.document_element())]
    targets += [(sel, page.query(sel)) for sel in APP_ROOT_SELECTORS + BACKGROUND_REGION_SELECTORS]
    seen = set()
    for source, el in targets:
        bg = _opaque_background(page, el)
        if not bg:
            continue
        hex_bg = hexify(bg, page.resolve_color)
        if hex_bg in seen:
            continue
        seen.add(hex_bg)
        out.append(BackgroundCandidate(color=hex_bg, source=source, area=page.bounding_box(el).area))
    return out

def detect_framework_hints(page: PageAccessor, css_vars: Dict[str, str]) -> List[str]:
    hints: List[str] = []
    generator = page.query('meta[name="generator" i]')
    if generator is not None:
        content = (page.attribute(generator, "content") or "").strip()
        if content:
            hints.append(content.split()[0].lower())
    for script in page.query_all("script[src]"):
        src = (page.attribute(script, "src") or "").lower()
        for needle, hint in SCRIPT_FINGERPRINTS.items():
            if needle in src:
                hints.append(hint)
    for name in css_vars:
        for prefix, hint in CSS_VAR_FINGERPRINTS.items():
            if name.startswith(prefix):
                hints.append(hint)
    return unique_keep_order(hints)

def collect_typography(page: PageAccessor) -> RawTypography:
    body = page.body()
    h1 = page.query("h1") or body
    h2 = page.query("h2") or h1
    p = page.query("p") or body

    def style(el: Optional[Element], prop: str) -> Optional[str]:
        if el is None:
            return None
        return page.computed_style(el, [prop]).get(prop) or None

    body_stack = split_font_stack(style(body, "font-family"))
    heading_stack = split_font_stack(style(h1, "font-family")) or body_stack
    return RawTypography(
        stacks=FontStacks(body=body_stack, heading=heading_stack),
        sizes=FontSizes(
            h1=style(h1, "font-size") or "32px",
            h2=style(h2, "font-size") or "24px",
            body=style(p, "font-size") or "16px",
        ),
    )

def collect_brand_name(page: PageAccessor) -> Optional[str]:
    site = page.query('meta[property="og:site_name" i]')
    title = page.query("title")
    return brand_name_from(
        page.text_content(title) if title is not None else None,
        page.attribute(site, "content") if site is not None else None,
    )

def _font_size(page: PageAccessor, el: Optional[Element]) -> Optional[float]:
    if el is None:
        return None
    return to_px(page.computed_style(el, ["font-size"]).get("font-size"))


# ---------- Entry point ----------

def collect_branding(page: PageAccessor) -> RawBrandingRecord:
    """Run one collection pass over a rendered page."""
    root_fs = _font_size(page, page.document_element())
    body_fs = _font_size(page, page.body())

    css_data = collect_css_data(page, root_fs, body_fs)

    snapshots: List[StyleSnapshot] = []
    for el in sample_elements(page):
        try:
            snapshots.append(style_snapshot(page, el, root_fs, body_fs))
        except Exception as e:
            logger.debug("Skipping element snapshot: %s", e)

    images, logo_candidates = find_images(page)
    color_scheme, page_background = detect_color_scheme(page)

    record = RawBrandingRecord(
        css_data=css_data,
        snapshots=snapshots,
        images=images,
        color_scheme=color_scheme,
        typography=collect_typography(page),
        framework_hints=detect_framework_hints(page, css_data.css_vars),
        page_background=hexify(page_background, page.resolve_color) if page_background else None,
        background_candidates=collect_background_candidates(page),
        logo_candidates=logo_candidates,
        brand_name=collect_brand_name(page),
    )
    logger.info(
        "Collected %d snapshots, %d css colors, %d logo candidates (%d rules skipped)",
        len(snapshots), len(css_data.colors), len(logo_candidates), len(css_data.skipped),
    )
    return record
