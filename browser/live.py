"""
Playwright-backed LiveElement adapter.

每个读取方法都是一次 ElementHandle.evaluate 往返，读取的是调用时刻的实时布局/样式，
适配器本身不缓存任何结果。元素脱离文档后 getBoundingClientRect 返回全 0，
可见性/几何判断自然失败，无需特殊处理。

Usage:
  doc = PageDocument(page, root_selector="body")
  root = doc.root()        # PWElement | None
  vp = doc.viewport()      # extract.geometry.Viewport
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from extract.constants import DEFAULT_VIEWPORT
from extract.geometry import Rect, Viewport

_JS_TAG = "e => e.tagName"
_JS_RECT = (
    "e => { const r = e.getBoundingClientRect();"
    " return {x: r.left, y: r.top, width: r.width, height: r.height}; }"
)
_JS_STYLE = (
    "e => { const s = window.getComputedStyle(e);"
    " return {display: s.display, visibility: s.visibility, opacity: s.opacity}; }"
)
# 文本节点返回原始字符串，元素节点返回 null（按顺序与 children 对齐）
_JS_CHILD_NODES = (
    "e => Array.from(e.childNodes)"
    ".filter(n => n.nodeType === 1 || n.nodeType === 3)"
    ".map(n => n.nodeType === 3 ? (n.textContent || '') : null)"
)
_JS_VIEWPORT = "() => ({width: window.innerWidth, height: window.innerHeight})"


class PWElement:
    def __init__(self, handle) -> None:
        self._handle = handle

    @property
    def handle(self):
        return self._handle

    def tag_name(self) -> str:
        return str(self._handle.evaluate(_JS_TAG) or "").lower()

    def rect(self) -> Rect:
        return Rect.from_dict(self._handle.evaluate(_JS_RECT))

    def computed_style(self) -> Dict[str, str]:
        style = self._handle.evaluate(_JS_STYLE) or {}
        return {k: str(v) for k, v in style.items()}

    def children(self) -> List["PWElement"]:
        return [PWElement(h) for h in self._handle.query_selector_all(":scope > *")]

    def child_nodes(self) -> List[Union[str, "PWElement"]]:
        kinds = self._handle.evaluate(_JS_CHILD_NODES) or []
        kids = iter(self.children())
        out: List[Union[str, PWElement]] = []
        for k in kinds:
            if k is None:
                el = next(kids, None)
                # 两次读取之间 DOM 变化时，以较短的一方为准
                if el is None:
                    break
                out.append(el)
            else:
                out.append(str(k))
        for extra in kids:
            extra.release()
        return out

    def has_class(self, name: str) -> bool:
        return bool(self._handle.evaluate("(e, c) => e.classList.contains(c)", name))

    def add_class(self, name: str) -> None:
        self._handle.evaluate("(e, c) => e.classList.add(c)", name)

    def remove_class(self, name: str) -> None:
        self._handle.evaluate("(e, c) => e.classList.remove(c)", name)

    def release(self) -> None:
        self._handle.dispose()

    def __repr__(self) -> str:  # pragma: no cover
        return f"PWElement({self._handle!r})"


class PageDocument:
    """extract.session.OverlaySession 所需的 document：root() + viewport()。"""

    def __init__(self, page, root_selector: str = "body") -> None:
        self._page = page
        self.root_selector = root_selector or "body"

    def root(self) -> Optional[PWElement]:
        handle = self._page.query_selector(self.root_selector)
        return PWElement(handle) if handle is not None else None

    def viewport(self) -> Viewport:
        try:
            vp: Any = self._page.evaluate(_JS_VIEWPORT)
        except Exception:
            vp = self._page.viewport_size
        return Viewport.from_dict(vp, fallback=DEFAULT_VIEWPORT)
