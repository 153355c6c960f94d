class BrandingError(Exception):
    """Base error for the branding pipeline."""


class StylesheetAccessError(BrandingError):
    """A stylesheet refused inspection (cross-origin, detached, ...)."""


class ClassificationError(BrandingError):
    """The semantic classifier could not produce an enhancement."""


class InvalidEnhancementError(ClassificationError):
    """The classifier answered, but not in the expected shape."""
