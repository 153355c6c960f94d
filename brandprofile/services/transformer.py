import logging
from typing import Optional, Union

import tldextract

from brandprofile.config import settings
from brandprofile.exceptions import BrandingError
from brandprofile.models.schemas import (
    DIAGNOSTIC_FIELDS,
    FinalBrandingProfile,
    HeuristicBrandingProfile,
    RawBrandingRecord,
)
from brandprofile.services.classifier import BrandingClassifier, ClassificationRequest
from brandprofile.services.collector import collect_branding
from brandprofile.services.inference import process_raw_branding
from brandprofile.services.merge import as_final, merge_branding_results
from brandprofile.services.page_access import PageAccessor

_logger = logging.getLogger(__name__)

# bundled public suffix snapshot only, no network lookups
_extract_domain = tldextract.TLDExtract(suffix_list_urls=())


def _domain_brand(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    ext = _extract_domain(url)
    return ext.domain.capitalize() if ext.domain else None

def strip_diagnostics(profile: FinalBrandingProfile) -> FinalBrandingProfile:
    return profile.model_copy(update={name: None for name in DIAGNOSTIC_FIELDS})

def branding_transformer(
    raw: RawBrandingRecord,
    classifier: Optional[BrandingClassifier] = None,
    url: Optional[str] = None,
    screenshot: Optional[Union[bytes, str]] = None,
    logger: Optional[logging.Logger] = None,
    debug: Optional[bool] = None,
) -> FinalBrandingProfile:
    """
    Heuristic inference, optional semantic classification, then merge.

    A classifier failure of any kind is logged and the heuristic profile is
    returned as-is. Diagnostics are stripped unless `debug` (default:
    DEBUG_BRANDING) is on.
    """
    log = logger or _logger
    if raw is None:
        raise BrandingError("no raw branding record to transform")
    debug = settings.DEBUG_BRANDING if debug is None else debug

    heuristic: HeuristicBrandingProfile = process_raw_branding(raw)
    profile = as_final(heuristic)

    if classifier is not None:
        buttons = heuristic.button_snapshots or []
        logo_candidates = raw.logo_candidates
        log.info("Sending %d buttons and %d logo candidates for classification",
                 len(buttons), len(logo_candidates))
        try:
            enhancement = classifier.classify(ClassificationRequest(
                profile=heuristic,
                buttons=buttons,
                logo_candidates=logo_candidates or None,
                brand_name=raw.brand_name or _domain_brand(url),
                screenshot=screenshot,
                url=url,
            ))
            bc = enhancement.button_classification
            log.info(
                "Classification complete: primary=%s secondary=%s button_confidence=%s "
                "color_confidence=%s logo=%s",
                bc.primary_index, bc.secondary_index, bc.confidence, enhancement.color_roles.confidence,
                enhancement.logo_selection.selected_index if enhancement.logo_selection else None,
            )
            profile = merge_branding_results(heuristic, enhancement, buttons, logo_candidates or None)
        except Exception as e:
            log.warning("Branding classification failed, using heuristic profile only: %s", e)
            profile = as_final(heuristic)

    if not debug:
        profile = strip_diagnostics(profile)
    return profile

def extract_branding(page: PageAccessor, classifier: Optional[BrandingClassifier] = None,
                     url: Optional[str] = None, screenshot: Optional[Union[bytes, str]] = None,
                     logger: Optional[logging.Logger] = None,
                     debug: Optional[bool] = None) -> FinalBrandingProfile:
    """Collect signals from a rendered page and turn them into a final profile."""
    raw = collect_branding(page)
    return branding_transformer(raw, classifier, url=url, screenshot=screenshot, logger=logger, debug=debug)
