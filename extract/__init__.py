"""Extract package initializer.

内容块抽取核心：可见性判断、几何启发式、自有文本聚合、树归约与选中/高亮状态机。
Playwright 相关的胶水代码位于 `browser` 包。
"""

from .config import ExtractConfig, load_config
from .errors import ExtractError
from .geometry import Rect, Viewport
from .qualifier import HeuristicProfile, meets_container_heuristic, profile_for
from .reducer import ReducedNode, build_tree, find_by_path, iter_nodes
from .selection import SelectionMachine, SelectionState
from .session import OverlaySession
from .visibility import is_visible

__all__ = [
    "ExtractConfig",
    "ExtractError",
    "HeuristicProfile",
    "OverlaySession",
    "Rect",
    "ReducedNode",
    "SelectionMachine",
    "SelectionState",
    "Viewport",
    "build_tree",
    "find_by_path",
    "is_visible",
    "iter_nodes",
    "load_config",
    "meets_container_heuristic",
    "profile_for",
]
