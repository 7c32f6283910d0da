"""
extract.export

归约树的导出与文本大纲：
 - tree_to_dict: 扁平化为 {"meta", "nodes", "roots"}，bbox 在导出时实时读取；
 - write_tree_json / selected_to_list: 写出 tree.json / selected.json 的内容；
 - format_tree: CLI 使用的缩进大纲。
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .constants import EXTRACT_FORMAT_VERSION
from .reducer import ReducedNode, iter_nodes
from .selection import SelectionMachine, SelectionState
from .utils import write_json

logger = logging.getLogger(__name__)

_TEXT_PREVIEW = 80


def _live_bbox(node: ReducedNode) -> List[int]:
    try:
        return node.element.rect().as_bbox()
    except Exception as e:
        logger.debug("bbox read failed on <%s>: %s", node.tag, e)
        return [0, 0, 0, 0]


def tree_to_dict(
    tree: Optional[ReducedNode],
    machine: Optional[SelectionMachine] = None,
    *,
    meta: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    ids: Dict[ReducedNode, str] = {}
    parents: Dict[ReducedNode, Optional[str]] = {}
    nodes: List[Dict[str, Any]] = []
    for path, node in iter_nodes(tree):
        nid = f"n{len(ids)}"
        ids[node] = nid
        for child in node.children:
            parents[child] = nid
        state = machine.state_of(node) if machine is not None else SelectionState()
        nodes.append({
            "id": nid,
            "path": path,
            "parent": parents.get(node),
            "tag": node.tag,
            "qualifying": node.qualifying,
            "own_text": node.own_text,
            "has_multiple_children": node.has_multiple_children,
            "bbox": _live_bbox(node),
            "expanded": state.expanded,
            "highlighted": state.was_last_clicked,
            "selected": state.is_selected,
        })
    # children 需要在全部 id 分配完后回填
    by_id = {n["id"]: n for n in nodes}
    for node, nid in ids.items():
        by_id[nid]["children"] = [ids[c] for c in node.children]
    out_meta = dict(meta or {})
    out_meta.update({
        "version": EXTRACT_FORMAT_VERSION,
        "count": len(nodes),
        "qualifying_count": sum(1 for n in nodes if n["qualifying"]),
    })
    return {"meta": out_meta, "nodes": nodes, "roots": [nodes[0]["id"]] if nodes else []}


def write_tree_json(path: str, tree: Optional[ReducedNode], machine: Optional[SelectionMachine] = None, *, meta: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    doc = tree_to_dict(tree, machine, meta=meta)
    write_json(path, doc)
    return doc


def selected_to_list(machine: SelectionMachine) -> List[Dict[str, Any]]:
    """供下游导出的已选节点列表（文档顺序）。"""
    paths = {node: path for path, node in iter_nodes(machine.tree)}
    out: List[Dict[str, Any]] = []
    for node in machine.selected_nodes():
        out.append({
            "path": paths[node],
            "tag": node.tag,
            "own_text": node.own_text,
            "bbox": _live_bbox(node),
        })
    return out


def _label(node: ReducedNode, path: str, state: SelectionState) -> str:
    if not node.children:
        icon = "•"
    else:
        icon = "▼" if state.expanded else "▶"
    flags = ""
    if node.own_text:
        flags += "*"
    if node.has_multiple_children:
        flags += "+"
    marks = ""
    if state.was_last_clicked:
        marks += " [H]"
    if state.is_selected:
        marks += " [S]"
    line = f"{icon} {path} <{node.tag}>{flags}{marks}"
    if node.own_text:
        text = node.own_text
        if len(text) > _TEXT_PREVIEW:
            text = text[: _TEXT_PREVIEW - 1] + "…"
        line += f"  {text}"
    return line


def format_tree(tree: Optional[ReducedNode], machine: Optional[SelectionMachine] = None, *, indent: str = "  ") -> str:
    """折叠节点的子树不输出；空树返回 "(no content found)"。"""
    if tree is None:
        return "(no content found)"
    lines: List[str] = []
    stack = [("0", tree, 0)]
    while stack:
        path, node, depth = stack.pop()
        state = machine.state_of(node) if machine is not None else SelectionState()
        lines.append(indent * depth + _label(node, path, state))
        if not state.expanded:
            continue
        for i in range(len(node.children) - 1, -1, -1):
            stack.append((f"{path}.{i}", node.children[i], depth + 1))
    return "\n".join(lines)
