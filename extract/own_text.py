"""
extract.own_text

自有文本聚合：收集元素直接拥有的文本，跳过嵌套的 article/section/div 子树
（这些子树会成为独立节点，避免文本被父节点重复计入）。
"""

from __future__ import annotations

from typing import Iterable, List

from .constants import TARGET_TAGS
from .utils import release_element


def own_text(element, target_tags: Iterable[str] = TARGET_TAGS) -> str:
    """按文档顺序拼接文本片段，片段之间以单个空格分隔。

    child_nodes() 取得的元素引用归本函数所有，访问完即释放；element 本身归调用方。
    """
    exclude = frozenset(t.lower() for t in target_tags)
    fragments: List[str] = []
    # 帧: (持有的元素, 其子节点迭代器)；起点元素记为 None
    stack = [(None, iter(element.child_nodes()))]
    try:
        while stack:
            owner, nodes = stack[-1]
            node = next(nodes, None)
            if node is None:
                stack.pop()
                if owner is not None:
                    release_element(owner)
                continue
            if isinstance(node, str):
                trimmed = node.strip()
                if trimmed:
                    fragments.append(trimmed)
                continue
            stack.append((node, iter(())))
            if (node.tag_name() or "").lower() not in exclude:
                stack[-1] = (node, iter(node.child_nodes()))
    finally:
        # 读取中途失败：释放尚未访问到的引用
        for owner, nodes in stack:
            for rest in nodes:
                if not isinstance(rest, str):
                    release_element(rest)
            if owner is not None:
                release_element(owner)
    return " ".join(fragments).strip()
