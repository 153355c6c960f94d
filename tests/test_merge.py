import pytest

from brandprofile.models.schemas import (
    ButtonClassification,
    ColorRoles,
    LogoCandidate,
    LogoSelection,
    SemanticEnhancement,
)
from brandprofile.services.collector import collect_branding
from brandprofile.services.inference import process_raw_branding
from brandprofile.services.merge import merge_branding_results

LOGOS = [
    LogoCandidate(src="https://acme.test/header-logo.svg", in_header=True),
    LogoCandidate(src="https://acme.test/footer-logo.png", position=1),
]


@pytest.fixture
def heuristic(brand_page):
    return process_raw_branding(collect_branding(brand_page))


def test_in_bounds_overrides(heuristic):
    enhancement = SemanticEnhancement(
        button_classification=ButtonClassification(primary_index=1, secondary_index=0, confidence=0.2),
        color_roles=ColorRoles(primary="rgb(255, 0, 0)", link="#00f", confidence=0.9),
        logo_selection=LogoSelection(selected_index=1, confidence=0.4),
    )
    final = merge_branding_results(heuristic, enhancement, heuristic.button_snapshots, LOGOS)

    # confidence is informational only; low-confidence answers still apply
    assert final.outcome("components.button_primary") == "overridden"
    assert final.components.button_primary.background == "#00000000"
    assert final.components.button_primary.border_radius == "6px"
    assert final.components.button_secondary.background == "#0A66FF"
    assert final.colors.primary == "#FF0000"
    assert final.colors.link == "#0000FF"
    assert final.outcome("colors.accent") == "kept-heuristic"
    assert final.colors.accent == heuristic.colors.accent
    assert final.images.logo == "https://acme.test/footer-logo.png"
    assert final.confidence.buttons == 0.2
    assert final.confidence.logo == 0.4

def test_out_of_range_indices_keep_heuristic(heuristic):
    enhancement = SemanticEnhancement(
        button_classification=ButtonClassification(primary_index=99, secondary_index=-1),
        logo_selection=LogoSelection(selected_index=2),
    )
    final = merge_branding_results(heuristic, enhancement, heuristic.button_snapshots, LOGOS)
    assert final.components == heuristic.components
    assert final.images == heuristic.images
    assert final.outcome("components.button_primary") == "kept-heuristic"
    assert final.outcome("components.button_secondary") == "kept-heuristic"
    assert final.outcome("images.logo") == "kept-heuristic"

def test_partial_failure_keeps_other_overrides(heuristic):
    enhancement = SemanticEnhancement(
        button_classification=ButtonClassification(primary_index=0),
        color_roles=ColorRoles(background="not a color", accent="#ABCDEF"),
        logo_selection=LogoSelection(selected_index=0),
    )
    # no logo candidates were sent, so index 0 cannot be honored
    final = merge_branding_results(heuristic, enhancement, heuristic.button_snapshots, None)
    assert final.outcome("components.button_primary") == "overridden"
    assert final.outcome("images.logo") == "kept-heuristic"
    assert final.outcome("colors.background") == "kept-heuristic"
    assert final.colors.background == heuristic.colors.background
    assert final.colors.accent == "#ABCDEF"

def test_empty_enhancement_changes_nothing(heuristic):
    final = merge_branding_results(heuristic, SemanticEnhancement(), [], None)
    assert all(item.source == "kept-heuristic" for item in final.merge_report)
    assert final.colors == heuristic.colors
    assert final.components == heuristic.components
    assert final.confidence.logo is None

def test_enhancement_accepts_alternate_keys():
    parsed = SemanticEnhancement.model_validate({
        "buttonClassification": {"primaryButtonIndex": 2, "secondaryButtonIndex": None, "confidence": "0.7"},
        "colorRoles": {"textPrimary": "#111111"},
        "logoSelection": {"selectedLogoIndex": 0},
    })
    assert parsed.button_classification.primary_index == 2
    assert parsed.button_classification.confidence == 0.7
    assert parsed.color_roles.text_primary == "#111111"
    assert parsed.logo_selection.selected_index == 0
    dumped = parsed.model_dump(by_alias=True)
    assert dumped["buttonClassification"]["primaryIndex"] == 2
    assert dumped["colorRoles"]["textPrimary"] == "#111111"
