"""
Contract for the semantic classification collaborator.

A classifier looks at the heuristic profile and the ranked candidates and says
which button is primary/secondary, which color plays which role and which
logo candidate is the real one. It may fail in any way (timeout, transport,
malformed answer); implementations signal that with `ClassificationError`
and the pipeline falls back to the heuristic profile.
"""
from typing import List, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict

from brandprofile.models.schemas import (
    ButtonSnapshot,
    HeuristicBrandingProfile,
    LogoCandidate,
    SemanticEnhancement,
)


class ClassificationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    profile: HeuristicBrandingProfile
    buttons: List[ButtonSnapshot] = []
    logo_candidates: Optional[List[LogoCandidate]] = None
    brand_name: Optional[str] = None
    screenshot: Optional[Union[bytes, str]] = None  # raw PNG bytes or base64 text
    url: Optional[str] = None


class BrandingClassifier(Protocol):
    def classify(self, request: ClassificationRequest) -> SemanticEnhancement:
        """Raises ClassificationError (or a subclass) when no enhancement can be produced."""
        ...
