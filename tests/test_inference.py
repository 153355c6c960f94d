import pytest

from brandprofile.models.schemas import (
    CSSData,
    FontStacks,
    ImageRef,
    RawBrandingRecord,
    RawTypography,
)
from brandprofile.services.collector import collect_branding
from brandprofile.services.normalizer import split_font_stack
from brandprofile.services.inference import (
    color_frequencies,
    infer_base_unit,
    infer_fonts_list,
    infer_palette,
    pick_border_radius,
    pick_logo,
    process_raw_branding,
)


@pytest.mark.parametrize("values,expected", [
    ([8, 16, 24, 32], 8),
    ([7, 15, 23], 8),
    ([4, 8, 12, 16], 4),
    ([12, 24, 36, 48], 12),
    ([10, 20, 30], 10),
    ([], 8),
    ([0, -4, 500], 8),
])
def test_infer_base_unit(values, expected):
    assert infer_base_unit(values) == expected

def test_base_unit_always_in_domain():
    for start in range(1, 60):
        unit = infer_base_unit([start, start * 3 + 1, start * 7 + 3])
        assert unit in {2, 4, 6, 8, 10, 12}

def test_pick_border_radius():
    assert pick_border_radius([]) == "8px"
    assert pick_border_radius([None, 4.0, 6.4, 12.0]) == "6px"
    assert pick_border_radius([2.5]) == "3px"

def test_color_frequencies_weights(make_snapshot):
    snaps = [make_snapshot(background="#0A66FF", color="#111111", border="#DDDDDD", w=90, h=0)]
    table = color_frequencies(snaps, ["#0A66FF", "rgba(0, 0, 0, 0)"], page_background="#FFFFFF")
    weights = {c.hex: c.frequency for c in table}
    assert weights["#FFFFFF"] == 1000
    assert weights["#0A66FF"] == pytest.approx(0.5 + 1.0414 + 0.5, abs=1e-3)
    assert weights["#111111"] == 1.0
    assert weights["#DDDDDD"] == 0.3
    assert "#00000000" not in weights
    assert [c.hex for c in table][0] == "#FFFFFF"

def test_light_palette(make_snapshot):
    snaps = [make_snapshot(tag="p", is_button=False, background="#00000000", color="#222222") for _ in range(5)]
    snaps += [
        make_snapshot(background="#7C3AED", color="#FFFFFF"),
        make_snapshot(tag="a", is_button=False, is_link=True, background="#00000000", color="#DB2777"),
    ]
    palette, _ = infer_palette(snaps, ["#F59E0B"], "light", "#FFFFFF")
    assert palette.background == "#FFFFFF"
    assert palette.text_primary == "#222222"
    assert palette.primary == "#7C3AED"
    assert palette.accent == "#DB2777"
    assert palette.link == "#DB2777"

def test_defaults_without_colors():
    palette, table = infer_palette([], [], "light", None)
    assert table == []
    assert palette.background == "#FFFFFF"
    assert palette.text_primary == "#111111"
    assert palette.primary == "#000000"
    assert palette.accent == "#000000"
    assert palette.link == "#000000"

    dark, _ = infer_palette([], [], "dark", None)
    assert dark.background == "#1A1A1A"
    assert dark.text_primary == "#FFFFFF"
    assert dark.primary == "#FFFFFF"

def test_dark_mode_prefers_dark_grayish_background(make_snapshot):
    # non-grayish page background, so the ranked table decides
    snaps = [
        make_snapshot(tag="main", is_button=False, background="#121214", color="#E5E5E5", w=1200, h=900),
        make_snapshot(tag="section", is_button=False, background="#F4F4F5", color="#E5E5E5", w=300, h=200),
    ]
    palette, _ = infer_palette(snaps, [], "dark", "#0F172A")
    assert palette.background == "#121214"

def test_dark_page_end_to_end(brand_page):
    profile = process_raw_branding(collect_branding(brand_page))
    assert profile.color_scheme == "dark"
    assert profile.colors.background == "#0B0B0C"
    assert profile.colors.primary == "#0A66FF"
    assert profile.colors.link == "#4F9DFF"
    assert profile.spacing.base_unit == 8
    assert profile.fonts[0].family == "Inter"
    assert "sans-serif" not in {f.family for f in profile.fonts}
    assert profile.typography.font_families.heading == "Space Grotesk"
    assert profile.images.favicon == "https://acme.test/favicon.ico"
    assert profile.images.og_image == "https://acme.test/og.png"
    assert profile.images.logo.startswith("data:image/svg+xml")
    assert profile.components.button_primary.background == "#0A66FF"
    assert profile.components.input.border_color == "#333333"
    assert [b.text for b in profile.button_snapshots] == ["Get Started", "Learn more"]

def test_fonts_list_counts_and_limit():
    stacks = [["Inter", "sans-serif"], ["Inter", "Georgia"], ["serif"]] + [[f"Font{i}"] for i in range(12)]
    fonts = infer_fonts_list(stacks)
    assert fonts[0].family == "Inter" and fonts[0].count == 2
    assert len(fonts) == 10
    assert all(f.family not in {"serif", "sans-serif"} for f in fonts)

def test_pick_logo_priority():
    images = [
        ImageRef(type="favicon", src="/f.ico"),
        ImageRef(type="og", src="/og.png"),
        ImageRef(type="logo-svg", src="data:image/svg+xml;utf8,x"),
    ]
    assert pick_logo(images) == "data:image/svg+xml;utf8,x"
    assert pick_logo(images[:2]) == "/og.png"
    assert pick_logo([]) is None

def test_process_minimal_record_never_raises():
    raw = RawBrandingRecord(
        css_data=CSSData(spacings=[float("nan"), 16.0], radii=[float("inf")]),
        typography=RawTypography(stacks=FontStacks()),
    )
    profile = process_raw_branding(raw)
    assert profile.typography.font_families.primary == "system-ui, sans-serif"
    assert profile.spacing.base_unit == 8
    assert profile.spacing.border_radius == "8px"
    assert profile.images.logo is None
    assert profile.button_snapshots == []
    assert profile.debug_colors.inferred_palette == profile.colors

def test_fonts_list_drops_emoji_fallbacks():
    tailwind = split_font_stack(
        'ui-sans-serif, system-ui, sans-serif, "Apple Color Emoji", "Segoe UI Emoji", '
        '"Segoe UI Symbol", "Noto Color Emoji"'
    )
    fonts = infer_fonts_list([tailwind, tailwind, ["Inter"]])
    assert [f.family for f in fonts] == ["Inter"]

def test_dark_scheme_ignores_default_white_page_background(make_snapshot):
    snaps = [make_snapshot(tag="main", is_button=False, background="#121214", color="#E5E5E5", w=1200, h=900)]
    palette, _ = infer_palette(snaps, [], "dark", "#FFFFFF")
    assert palette.background == "#121214"

    light, _ = infer_palette(snaps, [], "light", "#FFFFFF")
    assert light.background == "#FFFFFF"

def test_link_color_skips_button_styled_anchors(make_snapshot):
    snaps = [
        make_snapshot(tag="a", classes="btn", is_link=True, background="#7C3AED", color="#FFFFFF"),
        make_snapshot(tag="a", classes="", is_button=False, is_link=True, background="#00000000", color="#DB2777"),
    ]
    palette, _ = infer_palette(snaps, [], "light", "#FFFFFF")
    assert palette.link == "#DB2777"

    only_button, _ = infer_palette(snaps[:1], [], "light", "#FFFFFF")
    assert only_button.link == "#FFFFFF"
