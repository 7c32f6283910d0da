"""
extract.selection

归约树上的选中/高亮状态机，并把状态镜像到页面元素的标记类名上。

 - toggle_expand: 仅翻转该节点的展开状态，不影响子孙/祖先，也不触发高亮；
 - click: 全局至多一个高亮节点；先给当前节点写入标记，全部写入成功后才清除旧高亮；
 - toggle_select: 各节点独立翻转选中状态，互不排斥。

任意时刻节点的 {was_last_clicked, is_selected} 与其元素上的标记一致。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .constants import MARKERS
from .errors import ExtractError
from .reducer import ReducedNode, iter_nodes

logger = logging.getLogger(__name__)

# 节点上的三个可交互区域
TARGET_EXPAND = "expand"
TARGET_SELECT = "select"
TARGET_BODY = "body"


@dataclass
class SelectionState:
    expanded: bool = True
    was_last_clicked: bool = False
    is_selected: bool = False


Listener = Callable[[str, ReducedNode, SelectionState], None]


class SelectionMachine:
    def __init__(self, tree: Optional[ReducedNode], *, markers: Optional[Dict[str, str]] = None) -> None:
        self.tree = tree
        self.markers = dict(MARKERS)
        if markers:
            self.markers.update(markers)
        self._states: Dict[ReducedNode, SelectionState] = {node: SelectionState() for _, node in iter_nodes(tree)}
        self._highlighted: Optional[ReducedNode] = None
        self._listeners: List[Listener] = []

    # Query
    def state_of(self, node: ReducedNode) -> SelectionState:
        try:
            return self._states[node]
        except KeyError:
            raise ExtractError(code="UNKNOWN_NODE", stage="select", message=f"node <{node.tag}> is not part of this tree") from None

    @property
    def highlighted(self) -> Optional[ReducedNode]:
        return self._highlighted

    def selected_nodes(self) -> List[ReducedNode]:
        return [node for _, node in iter_nodes(self.tree) if self._states[node].is_selected]

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _emit(self, kind: str, node: ReducedNode) -> None:
        state = self._states[node]
        for fn in list(self._listeners):
            fn(kind, node, state)

    # Marker helpers
    def _set_marker(self, node: ReducedNode, key: str, on: bool) -> None:
        name = self.markers[key]
        try:
            if on:
                node.element.add_class(name)
            else:
                node.element.remove_class(name)
        except Exception as e:
            raise ExtractError(
                code="MARKER_WRITE_FAILED",
                stage="select",
                message=f"cannot {'add' if on else 'remove'} {name!r} on <{node.tag}>",
                original=e,
            ) from e

    def _clear_highlight_markers(self, node: ReducedNode) -> None:
        # 旧元素可能已脱离文档或句柄失效，清除失败只记录
        for key in ("highlighted", "recent"):
            try:
                self._set_marker(node, key, False)
            except ExtractError as e:
                logger.warning("clear highlight failed: %s", e)

    # Transitions
    def toggle_expand(self, node: ReducedNode) -> bool:
        state = self.state_of(node)
        state.expanded = not state.expanded
        self._emit("expand", node)
        return state.expanded

    def click(self, node: ReducedNode) -> None:
        """Click-to-highlight: move the single highlight to ``node``."""
        state = self.state_of(node)
        try:
            self._set_marker(node, "highlighted", True)
            self._set_marker(node, "recent", True)
        except ExtractError:
            # 部分写入时撤回，旧高亮保持不变
            if not state.was_last_clicked:
                self._clear_highlight_markers(node)
            raise
        prev = self._highlighted
        if prev is not None and prev is not node:
            self._clear_highlight_markers(prev)
            self._states[prev].was_last_clicked = False
        state.was_last_clicked = True
        self._highlighted = node
        self._emit("highlight", node)

    def toggle_select(self, node: ReducedNode) -> bool:
        state = self.state_of(node)
        target = not state.is_selected
        self._set_marker(node, "selected", target)
        state.is_selected = target
        self._emit("select", node)
        return target

    def dispatch(self, node: ReducedNode, target: str = TARGET_BODY) -> None:
        """把一次点击路由到唯一的处理器（不冒泡）。"""
        if target == TARGET_EXPAND:
            self.toggle_expand(node)
        elif target == TARGET_SELECT:
            self.toggle_select(node)
        elif target == TARGET_BODY:
            self.click(node)
        else:
            raise ValueError(f"unknown click target: {target!r}")

    def reset(self) -> None:
        """清除本树留在页面上的全部标记，状态回到默认值。"""
        for node, state in self._states.items():
            if state.was_last_clicked:
                self._clear_highlight_markers(node)
            if state.is_selected:
                try:
                    self._set_marker(node, "selected", False)
                except ExtractError as e:
                    logger.warning("clear selection failed: %s", e)
            self._states[node] = SelectionState()
        self._highlighted = None
