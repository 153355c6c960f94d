"""
Deterministic inference: Raw Branding Record -> Heuristic Branding Profile.

Everything here is a pure function of its inputs. Frequency tables are local
accumulators, so profiles for unrelated pages can be computed concurrently.
"""
import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from brandprofile.models.schemas import (
    ColorFrequency,
    DebugColors,
    FontFamilies,
    FontUsage,
    HeuristicBrandingProfile,
    ImageRef,
    Images,
    Palette,
    RawBrandingRecord,
    SnapshotColorSource,
    Spacing,
    StyleSnapshot,
    Typography,
)
from brandprofile.services.buttons import build_button_snapshots, build_components
from brandprofile.services.colors import contrast_yiq, hexify, is_grayish, is_transparent

logger = logging.getLogger(__name__)

DEFAULT_FONT = "system-ui, sans-serif"
GENERIC_FONTS = {
    "serif", "sans-serif", "monospace", "cursive", "fantasy", "system-ui",
    "ui-serif", "ui-sans-serif", "ui-monospace", "ui-rounded", "emoji", "math",
    "fangsong", "inherit", "initial", "unset", "revert",
    "apple color emoji", "segoe ui emoji", "segoe ui symbol", "noto color emoji",
}
BASE_UNIT_CANDIDATES = [12, 10, 8, 6, 4]
LOGO_PRIORITY = ["logo", "logo-svg", "og", "twitter", "favicon"]

PAGE_BACKGROUND_WEIGHT = 1000.0
TEXT_WEIGHT = 1.0
BORDER_WEIGHT = 0.3
CSS_COLOR_WEIGHT = 0.5


def _js_round(v: float) -> int:
    """Half-up rounding (Python's round() is half-to-even)."""
    return int(math.floor(v + 0.5))


# ---------- Palette ----------

def color_frequencies(snapshots: Sequence[StyleSnapshot], css_colors: Iterable[str],
                      page_background: Optional[str] = None) -> List[ColorFrequency]:
    """Weighted color table, heaviest first; equal weights keep first-seen order."""
    freq: Dict[str, float] = {}

    def bump(value: Optional[str], weight: float) -> None:
        h = hexify(value)
        if not h or is_transparent(h):
            return
        freq[h] = freq.get(h, 0.0) + weight

    bump(page_background, PAGE_BACKGROUND_WEIGHT)
    for s in snapshots:
        area = max(1.0, s.rect.w * s.rect.h)
        bump(s.colors.background, 0.5 + math.log10(area + 10))
        bump(s.colors.text, TEXT_WEIGHT)
        bump(s.colors.border, BORDER_WEIGHT)
    for c in css_colors:
        bump(c, CSS_COLOR_WEIGHT)

    ranked = sorted(freq.items(), key=lambda kv: kv[1], reverse=True)
    return [
        ColorFrequency(hex=h, frequency=round(w, 4), is_grayish=is_grayish(h), yiq=contrast_yiq(h))
        for h, w in ranked
    ]

def _first(colors: Iterable[str], pred) -> Optional[str]:
    return next((h for h in colors if pred(h)), None)

def pick_background(ranked: List[str], color_scheme: str, page_background: Optional[str]) -> str:
    page_bg = hexify(page_background)
    # plain white is the browser default, so it says nothing about a dark page
    if page_bg and page_bg != "#FFFFFF" and not is_transparent(page_bg) and is_grayish(page_bg):
        return page_bg
    if color_scheme == "dark":
        return (
            _first(ranked, lambda h: is_grayish(h) and 0 < contrast_yiq(h) < 128)
            or _first(ranked, lambda h: is_grayish(h) and contrast_yiq(h) < 180)
            or "#1A1A1A"
        )
    return _first(ranked, lambda h: is_grayish(h) and contrast_yiq(h) > 180) or "#FFFFFF"

def link_color(snapshots: Sequence[StyleSnapshot]) -> Optional[str]:
    # button-styled anchors carry button text colors, not the link color
    anchors = sorted((s for s in snapshots if s.is_link or s.tag == "a"), key=lambda s: s.is_button)
    return hexify(anchors[0].colors.text) if anchors else None

def infer_palette(snapshots: Sequence[StyleSnapshot], css_colors: Iterable[str],
                  color_scheme: str = "light",
                  page_background: Optional[str] = None) -> Tuple[Palette, List[ColorFrequency]]:
    table = color_frequencies(snapshots, css_colors, page_background)
    ranked = [c.hex for c in table]
    dark = color_scheme == "dark"

    background = pick_background(ranked, color_scheme, page_background)
    text_primary = (
        _first(ranked, lambda h: h != "#FFFFFF" and contrast_yiq(h) < 160)
        or ("#FFFFFF" if dark else "#111111")
    )
    primary = (
        _first(ranked, lambda h: not is_grayish(h) and h != text_primary and h != background)
        or ("#FFFFFF" if dark else "#000000")
    )
    accent = _first(ranked, lambda h: h != primary and not is_grayish(h)) or primary

    palette = Palette(
        primary=primary,
        accent=accent,
        background=background,
        text_primary=text_primary,
        link=link_color(snapshots) or accent,
    )
    return palette, table


# ---------- Spacing ----------

def infer_base_unit(values: Iterable[float]) -> int:
    vs = [_js_round(v) for v in values
          if v is not None and math.isfinite(v) and 0 < v <= 128]
    if not vs:
        return 8
    # largest unit the values agree on; smaller units divide most values trivially
    for c in BASE_UNIT_CANDIDATES:
        ok = sum(1 for v in vs if v % c <= 1 or abs(v % c - c) <= 1)
        if ok / len(vs) >= 0.6:
            return c
    vs.sort()
    med = vs[len(vs) // 2]
    return max(2, min(12, _js_round(med / 2) * 2))

def pick_border_radius(radii: Iterable[Optional[float]]) -> str:
    rs = sorted(r for r in radii if r is not None and math.isfinite(r))
    if not rs:
        return "8px"
    return f"{_js_round(rs[len(rs) // 2])}px"


# ---------- Typography ----------

def infer_fonts_list(stacks: Iterable[Iterable[str]], limit: int = 10) -> List[FontUsage]:
    freq: Dict[str, int] = {}
    for stack in stacks:
        for family in stack:
            if not family or family.lower() in GENERIC_FONTS:
                continue
            freq[family] = freq.get(family, 0) + 1
    ranked = sorted(freq.items(), key=lambda kv: kv[1], reverse=True)
    return [FontUsage(family=f, count=n) for f, n in ranked[:limit]]

def build_typography(raw: RawBrandingRecord) -> Typography:
    body = raw.typography.stacks.body
    heading = raw.typography.stacks.heading
    return Typography(
        font_families=FontFamilies(
            primary=body[0] if body else DEFAULT_FONT,
            heading=(heading[0] if heading else None) or (body[0] if body else DEFAULT_FONT),
        ),
        font_stacks=raw.typography.stacks,
        font_sizes=raw.typography.sizes,
    )


# ---------- Images ----------

def _image_of(images: Sequence[ImageRef], kind: str) -> Optional[str]:
    return next((i.src for i in images if i.type == kind and i.src), None)

def pick_logo(images: Sequence[ImageRef]) -> Optional[str]:
    for kind in LOGO_PRIORITY:
        src = _image_of(images, kind)
        if src:
            return src
    return None

def build_images(images: Sequence[ImageRef]) -> Images:
    return Images(
        logo=pick_logo(images),
        favicon=_image_of(images, "favicon"),
        og_image=_image_of(images, "og") or _image_of(images, "twitter"),
    )


# ---------- Diagnostics ----------

def _snapshot_sources(snapshots: Sequence[StyleSnapshot], attr: str,
                      with_area: bool = False) -> List[SnapshotColorSource]:
    out = []
    for s in snapshots:
        h = hexify(getattr(s.colors, attr))
        if h:
            out.append(SnapshotColorSource(
                hex=h,
                tag=s.tag,
                classes=(s.classes or "")[:50],
                area=s.rect.w * s.rect.h if with_area else None,
            ))
    return out

def build_debug_colors(raw: RawBrandingRecord, palette: Palette,
                       table: List[ColorFrequency]) -> DebugColors:
    return DebugColors(
        all_detected_colors=table,
        background_candidates=raw.background_candidates,
        raw_css_colors=raw.css_data.colors,
        snapshot_colors={
            "backgrounds": _snapshot_sources(raw.snapshots, "background", with_area=True),
            "texts": _snapshot_sources(raw.snapshots, "text"),
            "borders": _snapshot_sources(raw.snapshots, "border"),
        },
        inferred_palette=palette,
    )


# ---------- Entry point ----------

def process_raw_branding(raw: RawBrandingRecord) -> HeuristicBrandingProfile:
    palette, table = infer_palette(
        raw.snapshots, raw.css_data.colors, raw.color_scheme, raw.page_background,
    )
    border_radius = pick_border_radius(
        [s.radius for s in raw.snapshots] + list(raw.css_data.radii)
    )
    stacks = [raw.typography.stacks.body, raw.typography.stacks.heading]
    stacks += [s.typography.font_stack for s in raw.snapshots]
    stacks.append(raw.css_data.fonts)

    button_snapshots = build_button_snapshots(raw.snapshots)
    logger.debug("Inferred palette %s from %d colors, %d button candidates",
                 palette.model_dump(), len(table), len(button_snapshots))

    return HeuristicBrandingProfile(
        color_scheme=raw.color_scheme,
        fonts=infer_fonts_list(stacks),
        colors=palette,
        typography=build_typography(raw),
        spacing=Spacing(base_unit=infer_base_unit(raw.css_data.spacings), border_radius=border_radius),
        components=build_components(raw.snapshots, palette, border_radius),
        images=build_images(raw.images),
        framework_hints=list(raw.framework_hints),
        button_snapshots=button_snapshots,
        debug_colors=build_debug_colors(raw, palette, table),
    )
