"""
Page accessor contract consumed by the signal collector.

The collector never talks to a browser directly. Anything that can answer
these questions about an already-rendered document (a live Playwright page,
a captured HTML snapshot) can be collected from. Accessors must be read-only:
they may evaluate code in the page but must not mutate the DOM.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

Element = Any  # opaque handle, only ever passed back to the accessor that produced it


@dataclass(frozen=True)
class Box:
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def top(self) -> float:
        return self.y

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)


@dataclass(frozen=True)
class SvgNodeStyle:
    """Authored and computed styling of one node of an inline SVG (document order)."""
    attributes: Dict[str, str] = field(default_factory=dict)
    inline_style: Dict[str, str] = field(default_factory=dict)
    computed: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SvgSnapshot:
    markup: str
    nodes: List[SvgNodeStyle] = field(default_factory=list)


class StyleRule(Protocol):
    kind: str  # "style" | "font-face" | "other"

    def declarations(self) -> Dict[str, str]:
        """Property -> authored value. May raise when the rule is unreadable."""
        ...


class StyleSheet(Protocol):
    href: Optional[str]

    def rules(self) -> Sequence[StyleRule]:
        """Raises StylesheetAccessError when the sheet refuses inspection."""
        ...


class PageAccessor(Protocol):
    def stylesheets(self) -> Sequence[StyleSheet]: ...

    def select_unique(self, queries: Sequence[Tuple[str, int]]) -> List[Element]:
        """First `limit` matches of each selector, in order, deduplicated by identity."""
        ...

    def query(self, selector: str) -> Optional[Element]: ...

    def query_all(self, selector: str) -> List[Element]: ...

    def document_element(self) -> Optional[Element]: ...

    def body(self) -> Optional[Element]: ...

    def computed_style(self, el: Element, props: Sequence[str]) -> Dict[str, str]: ...

    def bounding_box(self, el: Element) -> Box: ...

    def tag_name(self, el: Element) -> str: ...

    def class_name(self, el: Element) -> str: ...

    def attribute(self, el: Element, name: str) -> Optional[str]: ...

    def text_content(self, el: Element) -> str: ...

    def matches(self, el: Element, selector: str) -> bool: ...

    def closest(self, el: Element, selector: str) -> Optional[Element]: ...

    def resolved_url(self, el: Element, attr: str) -> Optional[str]:
        """Absolute URL of an href/src attribute, as the page would resolve it."""
        ...

    def svg_snapshot(self, el: Element, props: Sequence[str]) -> SvgSnapshot: ...

    def resolve_color(self, value: str) -> Optional[str]:
        """Canvas-style round trip for named colors; None when unsupported."""
        ...
