from urllib.parse import unquote

from brandprofile.services.collector import (
    collect_branding,
    collect_css_data,
    detect_color_scheme,
    find_images,
)
from brandprofile.services.static_page import StaticPageAccessor, parse_css_rules


def test_unreadable_stylesheet_and_malformed_rule_are_skipped(brand_page):
    css = collect_css_data(brand_page)
    whole_sheet = [s for s in css.skipped if s.rule_index is None]
    assert [s.sheet for s in whole_sheet] == ["https://cdn.other.test/remote.css"]
    assert any(s.sheet is None and s.rule_index == 5 for s in css.skipped)
    # the rest of the inline sheet was still read
    assert "#0A66FF" in css.colors
    assert "#4F9DFF" in css.colors
    assert css.css_vars["--brand"] == "#0A66FF"

def test_css_lengths_resolved(brand_page):
    css = collect_css_data(brand_page)
    assert 6.0 in css.radii
    assert sorted(css.spacings) == [8.0, 16.0, 24.0]
    assert "Inter" in css.fonts

def test_svg_logo_variable_fill_is_inlined(brand_page):
    images, candidates = find_images(brand_page)
    logo = next(i for i in images if i.type == "logo-svg")
    assert logo.src.startswith("data:image/svg+xml;utf8,")
    markup = unquote(logo.src.split(",", 1)[1])
    assert "var(" not in markup
    assert "fill: #000000 !important" in markup
    assert 'xmlns="http://www.w3.org/2000/svg"' in markup
    assert "viewBox" in markup
    assert len(candidates) == 1
    assert candidates[0].in_header and candidates[0].is_svg

def test_favicon_and_og_image(brand_page):
    images, _ = find_images(brand_page)
    by_type = {i.type: i.src for i in images}
    assert by_type["favicon"] == "https://acme.test/favicon.ico"
    assert by_type["og"] == "https://acme.test/og.png"

def test_logo_img_excludes_partner_sections(light_page):
    images, candidates = find_images(light_page)
    assert [i.src for i in images if i.type == "logo"] == ["https://plain.test/img/plain-logo.png"]
    assert [c.src for c in candidates] == ["https://plain.test/img/plain-logo.png"]

def test_dark_class_wins(brand_page):
    scheme, background = detect_color_scheme(brand_page)
    assert scheme == "dark"
    assert background == "#0B0B0C"

def test_light_page_by_luminance(light_page):
    scheme, _ = detect_color_scheme(light_page)
    assert scheme == "light"

def test_dark_by_luminance_without_explicit_signal():
    page = StaticPageAccessor('<html><body style="background-color: rgb(20, 20, 24)"><p>x</p></body></html>')
    assert detect_color_scheme(page)[0] == "dark"

def test_collect_branding_record(brand_page):
    raw = collect_branding(brand_page)
    assert raw.color_scheme == "dark"
    assert raw.page_background == "#0B0B0C"
    assert raw.brand_name == "Acme"
    assert raw.typography.stacks.body == ["Inter", "system-ui", "sans-serif"]
    assert raw.typography.stacks.heading == ["Space Grotesk", "sans-serif"]
    assert raw.typography.sizes.h1 == "40px"

    buttons = [s for s in raw.snapshots if s.is_button]
    assert [b.text for b in buttons] == ["Get Started", "Learn more"]
    primary = buttons[0]
    assert primary.colors.background == "#0A66FF"
    assert primary.colors.text == "#FFFFFF"
    assert primary.radius == 6.0
    assert primary.rect.w == 140.0

    inputs = [s for s in raw.snapshots if s.is_input]
    assert inputs[0].colors.border == "#333333"

def test_framework_hints_and_brand_name(light_page):
    raw = collect_branding(light_page)
    assert raw.framework_hints == ["wordpress"]
    assert raw.brand_name == "Plain"

def test_parse_css_rules_descends_into_media():
    rules = parse_css_rules("""
        @import url(x.css);
        @media (min-width: 600px) { .a { color: red; } }
        @font-face { font-family: "Brand Sans"; src: url(b.woff2); }
        .b { margin: 4px }
    """)
    assert [r.kind for r in rules] == ["other", "style", "font-face", "style"]
    assert rules[0].selector == "@import url(x.css)"
    assert rules[1].selector == ".a"
    assert rules[2].declarations()["font-family"] == '"Brand Sans"'

def test_semicolons_inside_urls_and_strings_keep_the_rule():
    page = StaticPageAccessor("""<html><head><style>
      .hero { color: #0A66FF; background-image: url("data:image/png;base64,AAAA"); padding: 12px; }
      .tile { background: url(data:image/gif;base64,R0lG); border-radius: 4px; }
      .quote::before { content: "a;b"; border-color: #DDDDDD; }
    </style></head><body><p>x</p></body></html>""")
    css = collect_css_data(page)
    assert css.skipped == []
    assert css.colors == ["#0A66FF", "#DDDDDD"]
    assert css.spacings == [12.0]
    assert css.radii == [4.0]

def test_font_rules_skip_variables_and_read_shorthand():
    page = StaticPageAccessor("""<html><head><style>
      body { font-family: var(--font-sans, Inter), sans-serif; }
      h1 { font: 600 32px/1.2 "Space Grotesk", serif; }
      h2 { font: bold 24px Georgia; font-family: Lora; }
    </style></head><body><h1>x</h1></body></html>""")
    assert collect_css_data(page).fonts == ["sans-serif", "Space Grotesk", "serif", "Lora"]
