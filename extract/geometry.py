"""
extract.geometry
视口坐标系下的矩形与视口尺寸。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Rect:
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def left(self) -> float:
        return self.x

    @property
    def top(self) -> float:
        return self.y

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    def as_bbox(self) -> List[int]:
        return [int(round(self.x)), int(round(self.y)), int(round(self.width)), int(round(self.height))]

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "Rect":
        """从 getBoundingClientRect 风格的 dict 构造；缺失或非法字段按 0 处理。"""
        if not isinstance(d, dict):
            return cls()

        def _f(key: str) -> float:
            try:
                return float(d.get(key) or 0)
            except (TypeError, ValueError):
                return 0.0

        return cls(_f("x"), _f("y"), _f("width"), _f("height"))


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]], fallback: Optional[Dict[str, int]] = None) -> "Viewport":
        fb = fallback or {"width": 0, "height": 0}
        src = d if isinstance(d, dict) else fb
        try:
            return cls(float(src.get("width", fb["width"])), float(src.get("height", fb["height"])))
        except (TypeError, ValueError):
            return cls(float(fb["width"]), float(fb["height"]))
