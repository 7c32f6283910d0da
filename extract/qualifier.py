"""
extract.qualifier

几何启发式：判断元素的包围盒与位置是否满足“内容容器”条件。

两个档位（同一次抽取只使用一个）：
 - center（居中偏置）：尺寸 >= 300x200；水平中心距视口中线不超过 1/4 视口宽；
   垂直中心位于视口上 1/3 或下 1/3（中间 1/3 排除）。
 - in_bounds（宽松、在界内）：尺寸 >= 100x100；左右边界落在视口宽度中间 80%；
   上下边界完全位于视口高度之内。

所有条件都是硬性要求，另外都要求 is_visible 通过。
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from .constants import PROFILE_CENTER, PROFILE_IN_BOUNDS
from .errors import ExtractError
from .geometry import Viewport
from .visibility import is_visible


@dataclass(frozen=True)
class HeuristicProfile:
    name: str
    min_width: float
    min_height: float
    # center: 水平中心允许偏离视口中线的比例；垂直上下带的比例
    center_x_tolerance: float = 0.25
    vertical_band: float = 1.0 / 3.0
    # in_bounds: 左右各留出的边距比例
    horizontal_margin: float = 0.1
    require_width: bool = True


CENTER_PROFILE = HeuristicProfile(name=PROFILE_CENTER, min_width=300, min_height=200)
IN_BOUNDS_PROFILE = HeuristicProfile(name=PROFILE_IN_BOUNDS, min_width=100, min_height=100)

_PROFILES = {
    PROFILE_CENTER: CENTER_PROFILE,
    PROFILE_IN_BOUNDS: IN_BOUNDS_PROFILE,
}


def profile_for(
    name: str,
    *,
    min_width: Optional[float] = None,
    min_height: Optional[float] = None,
    require_width: Optional[bool] = None,
) -> HeuristicProfile:
    """按名称取档位，并可覆盖尺寸阈值。未知名称抛 ExtractError。"""
    base = _PROFILES.get((name or "").strip().lower())
    if base is None:
        raise ExtractError(code="UNKNOWN_PROFILE", stage="init", message=f"unknown heuristic profile: {name!r}")
    changes = {}
    if min_width is not None:
        changes["min_width"] = float(min_width)
    if min_height is not None:
        changes["min_height"] = float(min_height)
    if require_width is not None:
        changes["require_width"] = bool(require_width)
    return replace(base, **changes) if changes else base


def _center_ok(rect, viewport: Viewport, profile: HeuristicProfile) -> bool:
    vw, vh = viewport.width, viewport.height
    if abs(rect.center_x - vw / 2) >= vw * profile.center_x_tolerance:
        return False
    band = vh * profile.vertical_band
    in_top = rect.center_y < band
    in_bottom = rect.center_y > vh - band
    return in_top or in_bottom


def _in_bounds_ok(rect, viewport: Viewport, profile: HeuristicProfile) -> bool:
    vw, vh = viewport.width, viewport.height
    margin = vw * profile.horizontal_margin
    if rect.left < margin or rect.right > vw - margin:
        return False
    return rect.top >= 0 and rect.bottom <= vh


def meets_container_heuristic(element, viewport: Viewport, profile: HeuristicProfile = CENTER_PROFILE) -> bool:
    """Pure function of the element's current geometry/style and the viewport."""
    rect = element.rect()
    if rect.width < profile.min_width or rect.height < profile.min_height:
        return False
    if profile.name == PROFILE_IN_BOUNDS:
        placed = _in_bounds_ok(rect, viewport, profile)
    else:
        placed = _center_ok(rect, viewport, profile)
    if not placed:
        return False
    return is_visible(element, require_width=profile.require_width)
