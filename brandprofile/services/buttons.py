import math
import re
from typing import Dict, List, Optional, Sequence, Tuple

from brandprofile.config import settings
from brandprofile.models.schemas import (
    ButtonCandidate,
    ButtonSnapshot,
    ButtonStyle,
    Components,
    InputStyle,
    Palette,
    StyleSnapshot,
)
from brandprofile.services.colors import hexify, is_color_valid, is_transparent, readable_text_on

CTA_KEYWORDS = [
    "sign up",
    "get started",
    "deploy",
    "try",
    "demo",
    "contact",
    "buy",
    "subscribe",
    "join",
    "register",
    "free",
    "start",
    "get",
]
NEAR_WHITE = {"#FFFFFF", "#FAFAFA", "#F5F5F5"}
MIN_BUTTON_SIDE = 30
TRANSPARENT_HEX = "#00000000"

SECONDARY_CLASSES = {"secondary", "button-secondary", "btn-secondary", "outline", "ghost"}
CLASS_SPLIT_RE = re.compile(r"\s+")


def _class_tokens(classes: str) -> List[str]:
    return [c for c in CLASS_SPLIT_RE.split((classes or "").strip().lower()) if c]

def _px(value: Optional[float]) -> Optional[str]:
    return f"{value:g}px" if value else None


# ---------- Ranking ----------

def is_eligible(s: StyleSnapshot) -> bool:
    if not s.is_button:
        return False
    if s.rect.w < MIN_BUTTON_SIDE or s.rect.h < MIN_BUTTON_SIDE:
        return False
    if not (s.text or "").strip():
        return False
    return hexify(s.colors.background) is not None

def score_button(s: StyleSnapshot) -> float:
    score = 0.0
    if s.has_cta_indicator:
        score += 1000
    text = (s.text or "").lower()
    if any(kw in text for kw in CTA_KEYWORDS):
        score += 500
    bg = hexify(s.colors.background)
    if bg and bg not in NEAR_WHITE and not is_transparent(bg):
        score += 300
    if 0 < len(text) < 50:
        score += 100
    area = max(0.0, s.rect.w or 0) * max(0.0, s.rect.h or 0)
    score += math.log10(area + 1) * 10
    return score

def button_signature(s: StyleSnapshot) -> str:
    """Text, background and leading class tokens: what makes two buttons "the same"."""
    text_key = (s.text or "").strip().lower()[:50]
    bg = hexify(s.colors.background) or "transparent"
    class_key = " ".join(_class_tokens(s.classes)[:5])
    return f"{text_key}|{bg}|{class_key}"

def rank_buttons(snapshots: Sequence[StyleSnapshot]) -> List[ButtonCandidate]:
    candidates = [
        ButtonCandidate(snapshot=s, score=score_button(s), signature=button_signature(s))
        for s in snapshots if is_eligible(s)
    ]
    # sorted() is stable, so equal scores keep document order
    return sorted(candidates, key=lambda c: c.score, reverse=True)

def dedupe_buttons(candidates: Sequence[ButtonCandidate],
                   limit: Optional[int] = None) -> Tuple[List[ButtonCandidate], Dict[str, int]]:
    """Keep the first candidate per signature; return the survivors and how often each signature was seen."""
    limit = settings.MAX_BUTTON_CANDIDATES if limit is None else limit
    seen: Dict[str, int] = {}
    unique: List[ButtonCandidate] = []
    for cand in candidates:
        if cand.signature in seen:
            seen[cand.signature] += 1
            continue
        seen[cand.signature] = 1
        unique.append(cand)
    return unique[:limit], seen

def to_button_snapshots(candidates: Sequence[ButtonCandidate]) -> List[ButtonSnapshot]:
    out = []
    for idx, cand in enumerate(candidates):
        s = cand.snapshot
        border = None
        if s.colors.border_width and s.colors.border_width > 0:
            border = hexify(s.colors.border)
        out.append(ButtonSnapshot(
            index=idx,
            text=s.text or "",
            classes=s.classes or "",
            background=hexify(s.colors.background) or "transparent",
            text_color=hexify(s.colors.text) or "#000000",
            border_color=border,
            border_radius=_px(s.radius) or "0px",
            shadow=s.shadow,
            score=round(cand.score, 2),
            original_background_color=s.colors.background,
            original_text_color=s.colors.text,
            original_border_color=s.colors.border,
        ))
    return out

def build_button_snapshots(snapshots: Sequence[StyleSnapshot]) -> List[ButtonSnapshot]:
    unique, _ = dedupe_buttons(rank_buttons(snapshots))
    return to_button_snapshots(unique)


# ---------- Heuristic components ----------

def _is_primary_by_class(s: StyleSnapshot) -> bool:
    classes = (s.classes or "").lower()
    return "primary" in classes or "cta" in classes

def _is_secondary_by_class(s: StyleSnapshot) -> bool:
    tokens = _class_tokens(s.classes)
    for cls in tokens:
        if cls in SECONDARY_CLASSES:
            return True
        if "secondary" in cls and "tertiary" not in cls:
            return True
    return False

def _style_key(s: Optional[StyleSnapshot]) -> str:
    if s is None:
        return "transparent|none|inherit"
    return f"{s.colors.background or 'transparent'}|{s.colors.border or 'none'}|{s.colors.text or 'inherit'}"

def pick_primary_button(buttons: Sequence[StyleSnapshot]) -> Optional[StyleSnapshot]:
    """Explicit primary/cta class with a usable color, else the largest colored button, else any."""
    by_class = next((s for s in buttons if _is_primary_by_class(s)), None)
    if by_class is not None and is_color_valid(by_class.colors.background):
        return by_class
    colored = sorted(
        (s for s in buttons if is_color_valid(s.colors.background)),
        key=lambda s: s.rect.w * s.rect.h,
        reverse=True,
    )
    if colored:
        return colored[0]
    if by_class is not None:
        return by_class
    return buttons[0] if buttons else None

def pick_secondary_button(buttons: Sequence[StyleSnapshot],
                          primary: Optional[StyleSnapshot]) -> Optional[StyleSnapshot]:
    by_class = next((s for s in buttons if _is_secondary_by_class(s)), None)
    if by_class is not None:
        return by_class

    others = [b for b in buttons if b is not primary]
    if not others:
        return None

    primary_key = _style_key(primary)
    groups: Dict[str, List[StyleSnapshot]] = {}
    for b in others:
        key = _style_key(b)
        if key == primary_key:
            continue
        groups.setdefault(key, []).append(b)

    common = sorted((g for g in groups.values() if len(g) >= 2), key=len, reverse=True)
    if common:
        return common[0][0]

    primary_has_border = primary is not None and is_color_valid(primary.colors.border)
    for b in others:
        different_bg = primary is None or b.colors.background != primary.colors.background
        has_border = is_color_valid(b.colors.border) and not is_transparent(b.colors.border)
        if different_bg or (has_border and not primary_has_border):
            return b
    return None

def build_components(snapshots: Sequence[StyleSnapshot], palette: Palette,
                     border_radius: str) -> Components:
    buttons = [s for s in snapshots if s.is_button]
    primary = pick_primary_button(buttons)
    secondary = pick_secondary_button(buttons, primary)

    if primary is not None and is_color_valid(primary.colors.background):
        primary_bg = hexify(primary.colors.background)
    else:
        primary_bg = palette.primary
    primary_text = (hexify(primary.colors.text) if primary is not None else None) or readable_text_on(primary_bg)
    primary_radius = (_px(round(primary.radius)) if primary is not None and primary.radius else None) or border_radius

    button_secondary = None
    if secondary is not None:
        if is_color_valid(secondary.colors.background):
            secondary_bg = hexify(secondary.colors.background)
        else:
            secondary_bg = TRANSPARENT_HEX
        if is_color_valid(secondary.colors.border):
            secondary_border = hexify(secondary.colors.border)
        else:
            secondary_border = palette.primary
        button_secondary = ButtonStyle(
            background=secondary_bg,
            text_color=hexify(secondary.colors.text) or palette.primary,
            border_color=secondary_border,
            border_radius=(_px(round(secondary.radius)) if secondary.radius else None) or primary_radius,
        )

    first_input = next((s for s in snapshots if s.is_input), None)
    input_border = hexify(first_input.colors.border) if first_input is not None else None

    return Components(
        input=InputStyle(border_color=input_border or "#CCCCCC", border_radius=border_radius),
        button_primary=ButtonStyle(
            background=primary_bg,
            text_color=primary_text,
            border_radius=primary_radius,
        ),
        button_secondary=button_secondary,
    )
