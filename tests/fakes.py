"""In-memory LiveElement/document fakes for the extract tests."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Union

from extract.geometry import Rect, Viewport

DEFAULT_STYLE = {"display": "block", "visibility": "visible", "opacity": "1"}


class FakeElement:
    def __init__(
        self,
        tag: str,
        rect: Sequence[float] = (0, 0, 0, 0),
        nodes: Optional[List[Union[str, "FakeElement"]]] = None,
        *,
        style: Optional[Dict[str, str]] = None,
        classes: Sequence[str] = (),
        broken: bool = False,
    ) -> None:
        self.tag = tag
        self.box = Rect(*rect)
        self.nodes: List[Union[str, FakeElement]] = list(nodes or [])
        self.style = dict(DEFAULT_STYLE)
        self.style.update(style or {})
        self.classes = set(classes)
        self.broken = broken
        self.reads = 0
        self.released = False

    def tag_name(self) -> str:
        return self.tag.upper()

    def rect(self) -> Rect:
        self.reads += 1
        if self.broken:
            raise RuntimeError("cross-origin style read")
        return self.box

    def computed_style(self) -> Dict[str, str]:
        if self.broken:
            raise RuntimeError("cross-origin style read")
        return dict(self.style)

    def children(self) -> List["FakeElement"]:
        return [n for n in self.nodes if not isinstance(n, str)]

    def child_nodes(self) -> List[Union[str, "FakeElement"]]:
        return list(self.nodes)

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def add_class(self, name: str) -> None:
        self.classes.add(name)

    def remove_class(self, name: str) -> None:
        self.classes.discard(name)

    def release(self) -> None:
        self.released = True

    def __repr__(self) -> str:
        return f"<{self.tag} {self.box}>"


class FakeDocument:
    def __init__(self, root: Optional[FakeElement], width: float = 1200, height: float = 800) -> None:
        self._root = root
        self.size = Viewport(width, height)

    def root(self) -> Optional[FakeElement]:
        return self._root

    def viewport(self) -> Viewport:
        return self.size


def el(tag: str, rect: Sequence[float] = (0, 0, 0, 0), *nodes: Union[str, FakeElement], **kw) -> FakeElement:
    return FakeElement(tag, rect, list(nodes), **kw)


VIEWPORT = Viewport(1200, 800)


def hero(tag: str = "div", *nodes: Union[str, FakeElement], **kw) -> FakeElement:
    """400x300, horizontally centred in 1200x800, centre y=100 (top third)."""
    return el(tag, (400, -50, 400, 300), *nodes, **kw)
