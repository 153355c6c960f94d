from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Literal, Optional

ColorScheme = Literal["light", "dark"]
ImageType = Literal["favicon", "og", "twitter", "logo", "logo-svg"]
MergeSource = Literal["kept-heuristic", "overridden"]


class BrandModel(BaseModel):
    """Immutable model that serializes with camelCase keys."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


# ---------- Raw record (collector output) ----------

class Rect(BrandModel):
    w: float = 0.0
    h: float = 0.0

class SnapshotColors(BrandModel):
    text: Optional[str] = None
    background: Optional[str] = None
    border: Optional[str] = None
    border_width: Optional[float] = None

class SnapshotTypography(BrandModel):
    family: Optional[str] = None
    font_stack: List[str] = []
    size: Optional[str] = None
    weight: Optional[int] = None

class StyleSnapshot(BrandModel):
    tag: str
    classes: str = ""  # lower-cased className
    text: str = ""
    rect: Rect = Rect()
    colors: SnapshotColors = SnapshotColors()
    typography: SnapshotTypography = SnapshotTypography()
    radius: Optional[float] = None
    is_button: bool = False
    is_input: bool = False
    is_link: bool = False
    has_cta_indicator: Optional[bool] = None
    shadow: Optional[str] = None

class FontFace(BrandModel):
    family: str = ""
    src: str = ""

class RuleSkip(BrandModel):
    sheet: Optional[str] = None
    rule_index: Optional[int] = None  # None when the whole sheet was skipped
    reason: str

class CSSData(BrandModel):
    colors: List[str] = []
    radii: List[float] = []
    spacings: List[float] = []
    css_vars: Dict[str, str] = {}
    fonts: List[str] = []
    font_faces: List[FontFace] = []
    skipped: List[RuleSkip] = []

class ImageRef(BrandModel):
    type: ImageType
    src: str

class FontStacks(BrandModel):
    body: List[str] = []
    heading: List[str] = []

class FontSizes(BrandModel):
    h1: Optional[str] = None
    h2: Optional[str] = None
    body: Optional[str] = None

class RawTypography(BrandModel):
    stacks: FontStacks = FontStacks()
    sizes: FontSizes = FontSizes()

class BackgroundCandidate(BrandModel):
    color: str
    source: str
    area: Optional[float] = None

class Location(BrandModel):
    top: float = 0.0
    left: float = 0.0
    width: float = 0.0
    height: float = 0.0

class LogoCandidate(BrandModel):
    src: str
    alt: str = ""
    is_svg: bool = False
    is_visible: bool = True
    in_header: bool = False
    location: Location = Location()
    position: int = 0  # rank among the candidates, header logo first

class RawBrandingRecord(BrandModel):
    css_data: CSSData = CSSData()
    snapshots: List[StyleSnapshot] = []
    images: List[ImageRef] = []
    color_scheme: ColorScheme = "light"
    typography: RawTypography = RawTypography()
    framework_hints: List[str] = []
    page_background: Optional[str] = None
    background_candidates: List[BackgroundCandidate] = []
    logo_candidates: List[LogoCandidate] = []
    brand_name: Optional[str] = None


# ---------- Heuristic profile (inference output) ----------

class Palette(BrandModel):
    primary: Optional[str] = None
    accent: Optional[str] = None
    background: Optional[str] = None
    text_primary: Optional[str] = None
    link: Optional[str] = None

class FontUsage(BrandModel):
    family: str
    count: int

class FontFamilies(BrandModel):
    primary: str = "system-ui, sans-serif"
    heading: str = "system-ui, sans-serif"

class Typography(BrandModel):
    font_families: FontFamilies = FontFamilies()
    font_stacks: FontStacks = FontStacks()
    font_sizes: FontSizes = FontSizes()

class Spacing(BrandModel):
    base_unit: int = 8
    border_radius: str = "8px"

class ButtonStyle(BrandModel):
    background: Optional[str] = None
    text_color: Optional[str] = None
    border_color: Optional[str] = None
    border_radius: str = "0px"

class InputStyle(BrandModel):
    border_color: Optional[str] = "#CCCCCC"
    border_radius: str = "8px"

class Components(BrandModel):
    input: InputStyle = InputStyle()
    button_primary: Optional[ButtonStyle] = None
    button_secondary: Optional[ButtonStyle] = None

class Images(BrandModel):
    logo: Optional[str] = None
    favicon: Optional[str] = None
    og_image: Optional[str] = None

class ButtonSnapshot(BrandModel):
    """What the classifier sees of one ranked, deduplicated button."""
    index: int
    text: str = ""
    classes: str = ""
    background: str = "transparent"
    text_color: str = "#000000"
    border_color: Optional[str] = None
    border_radius: str = "0px"
    shadow: Optional[str] = None
    score: float = 0.0
    original_background_color: Optional[str] = None
    original_text_color: Optional[str] = None
    original_border_color: Optional[str] = None

class ButtonCandidate(BrandModel):
    snapshot: StyleSnapshot
    score: float = 0.0
    signature: str = ""

class ColorFrequency(BrandModel):
    hex: str
    frequency: float
    is_grayish: bool
    yiq: float

class SnapshotColorSource(BrandModel):
    hex: str
    tag: str
    classes: str = ""
    area: Optional[float] = None

class DebugColors(BrandModel):
    all_detected_colors: List[ColorFrequency] = []
    background_candidates: List[BackgroundCandidate] = []
    raw_css_colors: List[str] = []
    snapshot_colors: Dict[str, List[SnapshotColorSource]] = {}
    inferred_palette: Palette = Palette()

class HeuristicBrandingProfile(BrandModel):
    color_scheme: ColorScheme = "light"
    fonts: List[FontUsage] = []
    colors: Palette = Palette()
    typography: Typography = Typography()
    spacing: Spacing = Spacing()
    components: Components = Components()
    images: Images = Images()
    # diagnostics, stripped from the final profile unless debug is on
    framework_hints: Optional[List[str]] = None
    button_snapshots: Optional[List[ButtonSnapshot]] = None
    debug_colors: Optional[DebugColors] = None


# ---------- Semantic enhancement (classifier output) ----------

class ButtonClassification(BrandModel):
    primary_index: Optional[int] = Field(
        None, validation_alias=AliasChoices("primaryIndex", "primaryButtonIndex", "primary_index"),
        serialization_alias="primaryIndex")
    secondary_index: Optional[int] = Field(
        None, validation_alias=AliasChoices("secondaryIndex", "secondaryButtonIndex", "secondary_index"),
        serialization_alias="secondaryIndex")
    confidence: Optional[float] = None
    reasoning: Optional[str] = None

class ColorRoles(BrandModel):
    primary: Optional[str] = None
    accent: Optional[str] = None
    background: Optional[str] = None
    text_primary: Optional[str] = Field(
        None, validation_alias=AliasChoices("textPrimary", "text_primary"),
        serialization_alias="textPrimary")
    link: Optional[str] = None
    confidence: Optional[float] = None

class LogoSelection(BrandModel):
    selected_index: Optional[int] = Field(
        None, validation_alias=AliasChoices("selectedIndex", "selectedLogoIndex", "selected_index"),
        serialization_alias="selectedIndex")
    confidence: Optional[float] = None
    reasoning: Optional[str] = None

class SemanticEnhancement(BrandModel):
    button_classification: ButtonClassification = ButtonClassification()
    color_roles: ColorRoles = ColorRoles()
    logo_selection: Optional[LogoSelection] = None


# ---------- Final profile (merge output) ----------

DIAGNOSTIC_FIELDS = ("button_snapshots", "debug_colors", "framework_hints", "merge_report", "confidence")

class FieldOutcome(BrandModel):
    field: str
    source: MergeSource
    reason: Optional[str] = None

class EnhancementConfidence(BrandModel):
    buttons: Optional[float] = None
    colors: Optional[float] = None
    logo: Optional[float] = None

class FinalBrandingProfile(HeuristicBrandingProfile):
    # diagnostics, cleared together with the heuristic ones when debug is off
    merge_report: Optional[List[FieldOutcome]] = None
    confidence: Optional[EnhancementConfidence] = None

    def outcome(self, field: str) -> Optional[MergeSource]:
        for item in self.merge_report or []:
            if item.field == field:
                return item.source
        return None

    def to_output(self) -> Dict[str, Any]:
        """Serialize for callers; diagnostics appear only when retained."""
        exclude = {name for name in DIAGNOSTIC_FIELDS if getattr(self, name) is None}
        return self.model_dump(by_alias=True, exclude=exclude)
