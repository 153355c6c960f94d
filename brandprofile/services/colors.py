import re
from typing import Callable, Optional, Tuple

RGBA = Tuple[int, int, int, float]
NamedColorResolver = Callable[[str], Optional[str]]

HEX_RE = re.compile(r"^#([0-9a-f]{3,4}|[0-9a-f]{6}|[0-9a-f]{8})$", re.I)
RGB_FUNC_RE = re.compile(
    r"^rgba?\(\s*([\d.]+%?)\s*[,\s]\s*([\d.]+%?)\s*[,\s]\s*([\d.]+%?)"
    r"(?:\s*[,/]\s*([\d.]+%?))?\s*\)$",
    re.I,
)
COLOR_FUNC_RE = re.compile(
    r"^color\(\s*(?:display-p3|srgb)\s+([\d.]+)\s+([\d.]+)\s+([\d.]+)"
    r"(?:\s*/\s*([\d.]+%?))?\s*\)$",
    re.I,
)
NEAR_BLACK_WHITE_RE = re.compile(r"^#(FFF(FFF)?|000(000)?)$", re.I)


def _clamp(n: float, lo: int = 0, hi: int = 255) -> int:
    return max(lo, min(hi, int(round(n))))


def _channel(token: str) -> float:
    if token.endswith("%"):
        return float(token[:-1]) * 2.55
    return float(token)


def _alpha(token: Optional[str]) -> float:
    if token is None:
        return 1.0
    if token.endswith("%"):
        value = float(token[:-1]) / 100.0
    else:
        value = float(token)
    return round(max(0.0, min(1.0, value)), 2)


def parse_rgba(value: Optional[str], resolve_named: Optional[NamedColorResolver] = None) -> Optional[RGBA]:
    """Parse a CSS color into (r, g, b, alpha). Returns None when unparseable."""
    if not value or not isinstance(value, str):
        return None
    v = value.strip()
    if not v:
        return None
    try:
        m = HEX_RE.match(v)
        if m:
            h = m.group(1)
            if len(h) in (3, 4):
                h = "".join(ch * 2 for ch in h)
            a = int(h[6:8], 16) / 255.0 if len(h) == 8 else 1.0
            return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16), a

        m = COLOR_FUNC_RE.match(v)
        if m:
            r, g, b = (_clamp(float(x) * 255) for x in m.group(1, 2, 3))
            return r, g, b, _alpha(m.group(4))

        m = RGB_FUNC_RE.match(v)
        if m:
            r, g, b = (_clamp(_channel(x)) for x in m.group(1, 2, 3))
            return r, g, b, _alpha(m.group(4))
    except ValueError:
        return None

    if v.lower() == "transparent":
        return 0, 0, 0, 0.0
    if resolve_named is None or v.startswith(("#", "rgb", "color(", "var(")):
        return None
    # named colors go through the page's canvas round-trip, which answers in rgb()/hex
    try:
        resolved = resolve_named(v)
    except Exception:
        return None
    if not resolved or resolved.strip().lower() == v.lower():
        return None
    return parse_rgba(resolved)


def hexify(value: Optional[str], resolve_named: Optional[NamedColorResolver] = None) -> Optional[str]:
    """Normalize any CSS color to #RRGGBB, or #RRGGBBAA when translucent."""
    rgba = parse_rgba(value, resolve_named)
    if rgba is None:
        return None
    r, g, b, a = rgba
    out = "#{:02X}{:02X}{:02X}".format(r, g, b)
    if a < 1:
        out += "{:02X}".format(_clamp(a * 255))
    return out


def rgb_channels(hex_color: Optional[str]) -> Optional[Tuple[int, int, int]]:
    if not hex_color:
        return None
    h = hex_color.replace("#", "")
    if len(h) < 6:
        return None
    try:
        return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)
    except ValueError:
        return None


def contrast_yiq(hex_color: Optional[str]) -> float:
    channels = rgb_channels(hex_color)
    if channels is None:
        return 0.0
    r, g, b = channels
    return (r * 299 + g * 587 + b * 114) / 1000


def readable_text_on(background: Optional[str]) -> str:
    return "#FFFFFF" if contrast_yiq(background) < 128 else "#111111"


def is_grayish(hex_color: str) -> bool:
    channels = rgb_channels(hex_color)
    if channels is None:
        return True
    return max(channels) - min(channels) < 15


def is_transparent(color: Optional[str]) -> bool:
    rgba = parse_rgba(color)
    return rgba is not None and rgba[3] < 0.01


def is_color_valid(color: Optional[str]) -> bool:
    """True when a color is usable as a brand signal (not invisible, not plain black/white)."""
    if not color:
        return False
    if is_transparent(color):
        return False
    if color.startswith(("rgba(", "rgb(")):
        return True
    if NEAR_BLACK_WHITE_RE.match(color):
        return False
    return contrast_yiq(color) < 240


def relative_luminance(color: Optional[str]) -> Optional[float]:
    """WCAG relative luminance of an opaque-ish color, None when unparseable."""
    rgba = parse_rgba(color)
    if rgba is None:
        return None

    def linear(c: int) -> float:
        c = c / 255.0
        return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4

    r, g, b, _ = rgba
    return 0.2126 * linear(r) + 0.7152 * linear(g) + 0.0722 * linear(b)
