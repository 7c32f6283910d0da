"""
extract.visibility

可见性判断：元素是否被渲染且可感知。每次调用都重新读取布局与样式，不做缓存。
"""

from __future__ import annotations


def is_visible(element, *, require_width: bool = True) -> bool:
    """Return False when the element is hidden by style or has no rendered box.

    opacity 按字符串精确比较 "0"；"0.0" 之类的取值视为可见。
    require_width=False 时只要求高度 > 0。
    """
    style = element.computed_style() or {}
    if style.get("display") == "none":
        return False
    if style.get("visibility") == "hidden":
        return False
    if style.get("opacity") == "0":
        return False
    rect = element.rect()
    if rect.height <= 0:
        return False
    if require_width and rect.width <= 0:
        return False
    return True
