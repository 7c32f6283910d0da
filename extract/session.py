"""
extract.session

页面上的一次“覆盖层”会话：
 - extract_now(): 触发抽取；可重复调用，每次丢弃旧树（清除其标记、释放元素引用）后重建；
 - is_mounted(): 覆盖层是否处于激活状态（无副作用）；
 - dismiss(): 关闭覆盖层；
 - click/toggle_select/toggle_expand/dispatch: 按路径（"0.1.2"）寻址节点的交互入口。

document 需提供 root() 与 viewport() 两个方法，每次调用都读取实时状态。
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from .config import ExtractConfig
from .constants import ARTIFACTS
from .errors import ExtractError, warning
from .export import selected_to_list, write_tree_json
from .reducer import ReducedNode, build_tree, find_by_path, release_tree
from .selection import TARGET_BODY, SelectionMachine
from .utils import write_json

logger = logging.getLogger(__name__)


class OverlaySession:
    def __init__(self, document, config: Optional[ExtractConfig] = None) -> None:
        self.document = document
        self.config = config or ExtractConfig()
        self.tree: Optional[ReducedNode] = None
        self.machine: Optional[SelectionMachine] = None
        self.warnings: List[Dict[str, Any]] = []
        self._mounted = False

    def is_mounted(self) -> bool:
        return self._mounted

    def _teardown(self) -> None:
        if self.machine is not None:
            self.machine.reset()
        release_tree(self.tree)
        self.tree = None
        self.machine = None

    def extract_now(self) -> Optional[ReducedNode]:
        """Build a fresh reduced tree; ``None`` means no content was found."""
        self._teardown()
        profile = self.config.heuristic_profile()
        viewport = self.document.viewport()
        root = self.document.root()
        self.warnings = []
        if root is None:
            self.warnings.append(warning("NO_ROOT", "scan", f"root {self.config.root_selector!r} not found"))
        self.tree = build_tree(
            root,
            viewport,
            profile,
            target_tags=self.config.target_tags,
            track_own_text=self.config.track_own_text,
            warnings=self.warnings,
        )
        self.machine = SelectionMachine(self.tree, markers=self.config.markers())
        self._mounted = True
        if self.tree is None:
            logger.info("no content found (profile=%s, viewport=%sx%s)", profile.name, int(viewport.width), int(viewport.height))
        if self.warnings:
            logger.info("scan finished with %d warnings", len(self.warnings))
        return self.tree

    def dismiss(self) -> None:
        self._teardown()
        self._mounted = False

    # Interaction
    def _require_machine(self) -> SelectionMachine:
        if self.machine is None:
            raise ExtractError(code="NOT_MOUNTED", stage="select", message="overlay is not mounted; call extract_now() first")
        return self.machine

    def node(self, path: str) -> ReducedNode:
        self._require_machine()
        node = find_by_path(self.tree, path)
        if node is None:
            raise ExtractError(code="UNKNOWN_NODE", stage="select", message=f"no node at path {path!r}")
        return node

    def dispatch(self, path: str, target: str = TARGET_BODY) -> None:
        self._require_machine().dispatch(self.node(path), target)

    def click(self, path: str) -> None:
        self._require_machine().click(self.node(path))

    def toggle_select(self, path: str) -> bool:
        return self._require_machine().toggle_select(self.node(path))

    def toggle_expand(self, path: str) -> bool:
        return self._require_machine().toggle_expand(self.node(path))

    # Export
    def export(self, out_dir: str, *, meta: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
        """写出 tree.json 与 selected.json，返回 {artifact_key: path}。"""
        machine = self._require_machine()
        tree_path = os.path.join(out_dir, ARTIFACTS["tree"])
        selected_path = os.path.join(out_dir, ARTIFACTS["selected"])
        info = dict(meta or {})
        info.setdefault("profile", self.config.profile)
        info["warnings"] = list(self.warnings)
        write_tree_json(tree_path, self.tree, machine, meta=info)
        write_json(selected_path, {"selected": selected_to_list(machine)})
        return {"tree": tree_path, "selected": selected_path}
