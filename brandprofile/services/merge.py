"""
Reconcile the heuristic profile with a semantic enhancement.

Every field is decided on its own: an enhancement value replaces the
heuristic one only when it is present and valid (indices inside the list that
was sent to the classifier, colors that normalize to hex). One bad field never
discards the others. Each decision is recorded as a `FieldOutcome`.
"""
from typing import Any, List, Optional, Sequence

from brandprofile.models.schemas import (
    ButtonSnapshot,
    ButtonStyle,
    EnhancementConfidence,
    FieldOutcome,
    FinalBrandingProfile,
    HeuristicBrandingProfile,
    LogoCandidate,
    SemanticEnhancement,
)
from brandprofile.services.colors import hexify

COLOR_ROLES = ["primary", "accent", "background", "text_primary", "link"]


def as_final(heuristic: HeuristicBrandingProfile, merge_report: Optional[List[FieldOutcome]] = None,
             confidence: Optional[EnhancementConfidence] = None, **updates: Any) -> FinalBrandingProfile:
    fields = {name: getattr(heuristic, name) for name in HeuristicBrandingProfile.model_fields}
    fields.update(updates)
    return FinalBrandingProfile(**fields, merge_report=merge_report or [], confidence=confidence)

def _valid_index(index: Any, size: int) -> Optional[str]:
    """None when `index` can be dereferenced, otherwise why not."""
    if index is None:
        return "no index returned"
    if isinstance(index, bool) or not isinstance(index, int):
        return f"index {index!r} is not an integer"
    if not 0 <= index < size:
        return f"index {index} outside [0, {size})"
    return None

def button_style_from(snapshot: ButtonSnapshot) -> ButtonStyle:
    return ButtonStyle(
        background=hexify(snapshot.background),
        text_color=hexify(snapshot.text_color),
        border_color=hexify(snapshot.border_color),
        border_radius=snapshot.border_radius,
    )

def merge_branding_results(heuristic: HeuristicBrandingProfile, enhancement: SemanticEnhancement,
                           buttons: Sequence[ButtonSnapshot],
                           logo_candidates: Optional[Sequence[LogoCandidate]] = None) -> FinalBrandingProfile:
    report: List[FieldOutcome] = []

    def kept(field: str, reason: str) -> None:
        report.append(FieldOutcome(field=field, source="kept-heuristic", reason=reason))

    def overridden(field: str, reason: Optional[str] = None) -> None:
        report.append(FieldOutcome(field=field, source="overridden", reason=reason))

    # buttons
    components = heuristic.components
    bc = enhancement.button_classification
    for slot, index in (("button_primary", bc.primary_index), ("button_secondary", bc.secondary_index)):
        field = f"components.{slot}"
        problem = _valid_index(index, len(buttons))
        if problem:
            kept(field, problem)
            continue
        components = components.model_copy(update={slot: button_style_from(buttons[index])})
        overridden(field, f"button {index}")

    # color roles
    colors = heuristic.colors
    roles = enhancement.color_roles
    for role in COLOR_ROLES:
        field = f"colors.{role}"
        value = getattr(roles, role)
        if not value:
            kept(field, "no value returned")
            continue
        hex_value = hexify(value)
        if hex_value is None:
            kept(field, f"unparseable color {value!r}")
            continue
        colors = colors.model_copy(update={role: hex_value})
        overridden(field)

    # logo
    images = heuristic.images
    selection = enhancement.logo_selection
    candidates = list(logo_candidates or [])
    if selection is None:
        kept("images.logo", "no logo selection returned")
    else:
        problem = _valid_index(selection.selected_index, len(candidates))
        if problem:
            kept("images.logo", problem)
        else:
            images = images.model_copy(update={"logo": candidates[selection.selected_index].src})
            overridden("images.logo", f"candidate {selection.selected_index}")

    confidence = EnhancementConfidence(
        buttons=bc.confidence,
        colors=roles.confidence,
        logo=selection.confidence if selection is not None else None,
    )
    return as_final(heuristic, report, confidence, components=components, colors=colors, images=images)
