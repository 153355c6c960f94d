import pytest

from brandprofile.models.schemas import (
    Rect,
    SnapshotColors,
    SnapshotTypography,
    StyleSnapshot,
)
from brandprofile.services.static_page import StaticPageAccessor

BRAND_PAGE = """
<html class="dark">
<head>
  <title>Acme | Build faster</title>
  <meta property="og:image" content="https://acme.test/og.png">
  <link rel="icon" href="/favicon.ico">
  <link rel="stylesheet" href="https://cdn.other.test/remote.css">
  <style>
    :root { --bg: #000000; --brand: #0A66FF; }
    body { background-color: #0B0B0C; color: #EDEDED; font-family: "Inter", system-ui, sans-serif; font-size: 16px; }
    h1 { font-family: "Space Grotesk", sans-serif; font-size: 40px; }
    .btn { padding: 8px 16px; border-radius: 6px; margin: 16px; }
    .btn-primary { background-color: var(--brand); color: #FFFFFF; }
    .broken { color red }
    a { color: #4F9DFF; }
    .gap { gap: 24px; }
  </style>
</head>
<body>
  <header>
    <a href="/"><svg id="logo" class="logo" viewBox="0 0 10 10" data-rect="10 10 100 30"><path d="M0 0h10v10z" fill="var(--bg)"></path></svg></a>
  </header>
  <main>
    <h1 data-rect="0 80 800 50">Ship it</h1>
    <p data-rect="0 140 800 20">Body text</p>
    <a href="/docs" data-rect="0 170 60 20">Docs</a>
    <button class="btn btn-primary" data-rect="0 200 140 44">Get Started</button>
    <button class="btn" data-rect="160 200 120 44">Learn more</button>
    <input type="email" style="border-top-color: #333333" data-rect="0 260 200 36">
  </main>
</body>
</html>
"""

LIGHT_PAGE = """
<html>
<head>
  <title>Plain Shop</title>
  <meta property="og:site_name" content="Plain">
  <meta name="generator" content="WordPress 6.4">
  <script src="https://plain.test/wp-includes/js/jquery.js"></script>
  <style>
    body { background-color: #FFFFFF; color: #222222; font-family: Georgia, serif; }
    .site-logo img { width: 120px; }
  </style>
</head>
<body>
  <div class="site-logo"><img src="/img/plain-logo.png" alt="Plain logo" data-rect="20 5 120 40"></div>
  <section class="clients"><img src="/img/partner-logo.png" alt="partner logo" data-rect="0 900 80 40"></section>
  <p data-rect="0 100 600 20">Hello</p>
</body>
</html>
"""


@pytest.fixture
def brand_page():
    return StaticPageAccessor(BRAND_PAGE, base_url="https://acme.test/")

@pytest.fixture
def light_page():
    return StaticPageAccessor(LIGHT_PAGE, base_url="https://plain.test/")

@pytest.fixture
def make_snapshot():
    def _make(tag="button", text="Click", classes="btn", w=120.0, h=40.0,
              background="#0000FF", color="#FFFFFF", border=None, border_width=None,
              radius=None, is_button=True, is_input=False, is_link=False,
              cta=None, stack=None):
        return StyleSnapshot(
            tag=tag,
            classes=classes,
            text=text,
            rect=Rect(w=w, h=h),
            colors=SnapshotColors(text=color, background=background, border=border, border_width=border_width),
            typography=SnapshotTypography(family=(stack or [None])[0], font_stack=stack or []),
            radius=radius,
            is_button=is_button,
            is_input=is_input,
            is_link=is_link,
            has_cta_indicator=cta,
        )
    return _make
