import re
from typing import Iterable, List, Optional

NEXTJS_HASH_RE = re.compile(r"_[a-f0-9]{6}$")
LEADING_NUMBER_RE = re.compile(r"^[-+]?(\d+\.?\d*|\.\d+)")
# font shorthand: the family list follows the size and optional /line-height
FONT_SHORTHAND_RE = re.compile(
    r"(?:^|\s)(?:[\d.]+(?:px|r?em|pt|pc|%|ex|ch|vw|vh|mm|cm|in|q)|(?:xx?-)?(?:small|large)|medium|smaller|larger)"
    r"(?:\s*/\s*[^\s,]+)?\s+(?P<family>\S.*)$",
    re.I,
)

def clean_text(s: Optional[str], limit: Optional[int] = None) -> str:
    if not s:
        return ""
    s = re.sub(r"\s+", " ", s).strip()
    return s[:limit] if limit else s

def unique_keep_order(items: Iterable) -> List:
    seen = set()
    out = []
    for x in items:
        if x and x not in seen:
            out.append(x)
            seen.add(x)
    return out

def to_px(value: Optional[str], root_font_size: Optional[float] = None,
          body_font_size: Optional[float] = None) -> Optional[float]:
    """Resolve a CSS length to pixels; ambiguous or unparseable values give None."""
    if not value:
        return None
    v = value.strip().lower()
    if not v or v == "auto":
        return None
    if v.endswith("%"):
        return None
    # leading number only, so "12px 4px" shorthands resolve to their first component
    m = LEADING_NUMBER_RE.match(v)
    if not m:
        return None
    num = float(m.group(0))
    if v.endswith("rem"):
        return num * (root_font_size or 16.0)
    if v.endswith("em"):
        return num * (body_font_size or 16.0)
    return num

def clean_nextjs_font_name(name: str) -> Optional[str]:
    """"__Roboto_Mono_c8ca7d" -> "Roboto Mono"; Next.js fallback faces -> None."""
    if not name.startswith("__"):
        return name
    if "_Fallback_" in name:
        return None
    cleaned = NEXTJS_HASH_RE.sub("", name[2:])
    return " ".join(w[:1].upper() + w[1:].lower() for w in cleaned.split("_") if w)

def split_top_level(value: str, sep: str = ",") -> List[str]:
    """Split on `sep` outside quotes and parentheses."""
    parts, buf = [], []
    depth, quote = 0, None
    for ch in value:
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        elif ch == sep and depth == 0:
            parts.append("".join(buf))
            buf = []
            continue
        buf.append(ch)
    parts.append("".join(buf))
    return parts

def split_font_stack(value: Optional[str]) -> List[str]:
    """Split a font-family value into bare family names, fallbacks included.

    Entries that still hold a var() reference are dropped; they are not names.
    """
    if not value:
        return []
    out = []
    for part in split_top_level(value):
        if "var(" in part:
            continue
        name = part.replace('"', "").replace("'", "").strip()
        if not name:
            continue
        cleaned = clean_nextjs_font_name(name)
        if cleaned:
            out.append(cleaned)
    return out

def font_family_from_shorthand(value: Optional[str]) -> Optional[str]:
    """"italic 600 16px/1.5 Inter, sans-serif" -> "Inter, sans-serif"."""
    if not value:
        return None
    m = FONT_SHORTHAND_RE.search(value.strip())
    return m.group("family").strip() if m else None
