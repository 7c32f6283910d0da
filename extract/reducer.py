"""
extract.reducer

树归约：自顶向下遍历一次实时 DOM，只保留“内容容器”以及连接根与这些容器所需的最小祖先链。

规则：
 - 标签属于 article/section/div 且通过几何启发式 → 合格节点，收集其子结果后定型；
 - 否则 → 仍然遍历子元素；只要有子结果就生成“直通”节点承载它们，否则整棵子树剪掉；
 - 整页没有合格内容时返回 None（“未找到内容”，不是错误）。

单个元素读取失败（样式不可读、句柄失效等）不会中断遍历：该元素按不合格处理，记入 warnings。

元素引用的归属：build 接管 root 以及遍历中取得的全部元素引用。未进入归约树的元素在剪掉时立即释放，
进入归约树的由 release_tree 释放。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .constants import TARGET_TAGS
from .geometry import Viewport
from .errors import warning
from .own_text import own_text
from .qualifier import CENTER_PROFILE, HeuristicProfile, meets_container_heuristic
from .utils import release_element

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class ReducedNode:
    """归约树节点。element 只是对页面元素的引用，不拥有其生命周期。"""

    element: Any
    tag: str
    children: List["ReducedNode"] = field(default_factory=list)
    own_text: Optional[str] = None
    qualifying: bool = False
    has_multiple_children: bool = False


class TreeReducer:
    def __init__(
        self,
        viewport: Viewport,
        profile: HeuristicProfile = CENTER_PROFILE,
        *,
        target_tags: Iterable[str] = TARGET_TAGS,
        track_own_text: bool = True,
        warnings: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        self.viewport = viewport
        self.profile = profile
        self.target_tags = tuple(t.lower() for t in target_tags)
        self.track_own_text = track_own_text
        self.warnings: List[Dict[str, Any]] = warnings if warnings is not None else []

    def _warn(self, code: str, tag: str, err: Exception) -> None:
        self.warnings.append(warning(code, "scan", err, tag))
        logger.debug("%s on <%s>: %s", code, tag or "?", err)

    def _tag(self, element) -> str:
        try:
            return (element.tag_name() or "").lower()
        except Exception as e:
            self._warn("TAG_READ_FAILED", "", e)
            return ""

    def _qualifies(self, element, tag: str) -> bool:
        if tag not in self.target_tags:
            return False
        try:
            return meets_container_heuristic(element, self.viewport, self.profile)
        except Exception as e:
            self._warn("STYLE_READ_FAILED", tag, e)
            return False

    def _children(self, element, tag: str) -> List[Any]:
        try:
            return list(element.children() or [])
        except Exception as e:
            self._warn("CHILDREN_READ_FAILED", tag, e)
            return []

    def _own_text(self, element, tag: str) -> Optional[str]:
        if not self.track_own_text:
            return None
        try:
            return own_text(element, self.target_tags)
        except Exception as e:
            self._warn("TEXT_READ_FAILED", tag, e)
            return ""

    def build(self, root) -> Optional[ReducedNode]:
        """Depth-first walk with post-order finalisation.

        An explicit stack keeps arbitrarily deep documents clear of the
        interpreter's recursion limit.
        """
        if root is None:
            return None
        tag = self._tag(root)
        # 帧: [element, tag, qualifying, 待访问子元素, 已收集子节点]
        stack: List[list] = [[root, tag, self._qualifies(root, tag), iter(self._children(root, tag)), []]]
        result: Optional[ReducedNode] = None
        while stack:
            frame = stack[-1]
            child = next(frame[3], None)
            if child is not None:
                ctag = self._tag(child)
                stack.append([child, ctag, self._qualifies(child, ctag), iter(self._children(child, ctag)), []])
                continue
            stack.pop()
            element, etag, qualifying, _, kids = frame
            node: Optional[ReducedNode] = None
            if qualifying or kids:
                node = ReducedNode(
                    element=element,
                    tag=etag,
                    children=kids,
                    own_text=self._own_text(element, etag),
                    qualifying=qualifying,
                    has_multiple_children=len(kids) > 1,
                )
            if node is None:
                release_element(element)
            elif stack:
                stack[-1][4].append(node)
            if not stack:
                result = node
        return result


def build_tree(
    root,
    viewport: Viewport,
    profile: HeuristicProfile = CENTER_PROFILE,
    *,
    target_tags: Iterable[str] = TARGET_TAGS,
    track_own_text: bool = True,
    warnings: Optional[List[Dict[str, Any]]] = None,
) -> Optional[ReducedNode]:
    """Reduce the live document under ``root``; ``None`` means no content found."""
    reducer = TreeReducer(
        viewport,
        profile,
        target_tags=target_tags,
        track_own_text=track_own_text,
        warnings=warnings,
    )
    return reducer.build(root)


def iter_nodes(tree: Optional[ReducedNode]) -> Iterator[Tuple[str, ReducedNode]]:
    """前序遍历，产出 (路径, 节点)；根路径为 "0"，子节点为 "0.1" 等。"""
    if tree is None:
        return
    stack: List[Tuple[str, ReducedNode]] = [("0", tree)]
    while stack:
        path, node = stack.pop()
        yield path, node
        for i in range(len(node.children) - 1, -1, -1):
            stack.append((f"{path}.{i}", node.children[i]))


def find_by_path(tree: Optional[ReducedNode], path: str) -> Optional[ReducedNode]:
    if tree is None:
        return None
    parts = [p for p in (path or "").strip().split(".") if p != ""]
    if not parts or parts[0] != "0":
        return None
    node = tree
    for p in parts[1:]:
        try:
            idx = int(p)
        except ValueError:
            return None
        if idx < 0 or idx >= len(node.children):
            return None
        node = node.children[idx]
    return node


def release_tree(tree: Optional[ReducedNode]) -> None:
    """释放节点持有的宿主侧元素引用（如 Playwright 句柄）。"""
    for _, node in iter_nodes(tree):
        release_element(node.element)
