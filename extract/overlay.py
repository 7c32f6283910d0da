"""
extract.overlay
在视口截图上根据归约树（tree.json）打框，颜色与线宽随深度变化。

用法（命令行）：
    python -m extract.overlay --dir workspace/extract/<domain>/<ts> \
        --image screenshot.png --out screenshot_overlay.png --label

说明：
    - 直通节点画细虚色框，合格节点按深度上色；
    - 当前高亮节点额外画金色粗框，已选节点做半透明填充；
    - bbox 为导出时的视口坐标，超出画布的部分裁掉。
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Tuple, Union

from PIL import Image, ImageDraw, ImageFont

HIGHLIGHT_COLOR = (255, 200, 0)
SELECTED_FILL = (60, 140, 255, 72)
PASS_THROUGH_COLOR = (160, 160, 160)


def _load_tree(tree: Union[str, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(tree, dict):
        return tree
    with open(tree, "r", encoding="utf-8") as f:
        return json.load(f)


def _compute_depths(nodes: List[Dict[str, Any]]) -> Dict[str, int]:
    # nodes 为前序排列，父节点总在子节点之前
    depth: Dict[str, int] = {}
    for n in nodes:
        pid = n.get("parent")
        depth[n["id"]] = depth.get(pid, -1) + 1 if pid else 0
    return depth


def _palette(depth: int) -> Tuple[int, int, int]:
    colors = [
        (240,  64,  64), (255, 140,   0), ( 64, 200,  80),
        ( 60, 200, 200), ( 60, 140, 255), (160,  80, 255),
        (230,  60, 230),
    ]
    return colors[depth % len(colors)]


def _map_thickness(depth: int, max_depth: int, min_t: int, max_t: int) -> int:
    if max_depth <= 0:
        return max_t
    span = max(1, max_t - min_t)
    # 越靠近根线越粗
    t = min_t + round(span * (max_depth - depth) / max_depth)
    return max(min_t, min(max_t, t))


def _clip(bbox: List[int], size: Tuple[int, int]) -> List[int]:
    x, y, w, h = [int(v or 0) for v in (bbox or [0, 0, 0, 0])]
    x0, y0 = max(0, x), max(0, y)
    x1, y1 = min(size[0], x + w), min(size[1], y + h)
    if x1 <= x0 or y1 <= y0:
        return []
    return [x0, y0, x1, y1]


def draw_tree_overlay(
    image_path: str,
    tree: Union[str, Dict[str, Any]],
    out_path: str,
    *,
    min_thickness: int = 1,
    max_thickness: int = 5,
    label: bool = False,
) -> int:
    """在 image_path 上绘制节点框，输出至 out_path。返回实际绘制的节点数。"""
    doc = _load_tree(tree)
    nodes = [n for n in (doc.get("nodes") or []) if isinstance(n, dict) and n.get("id")]

    depth_map = _compute_depths(nodes)
    max_depth = max(depth_map.values()) if depth_map else 0

    img = Image.open(image_path).convert("RGBA")
    overlay = Image.new("RGBA", img.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    font = ImageFont.load_default()

    drawn = 0
    highlight_box = None
    for n in nodes:
        box = _clip(n.get("bbox"), img.size)
        if not box:
            continue
        d = depth_map.get(n["id"], 0)
        if n.get("selected"):
            draw.rectangle(box, fill=SELECTED_FILL)
        if n.get("qualifying"):
            color = _palette(d)
            width = _map_thickness(d, max_depth, min_thickness, max_thickness)
        else:
            color = PASS_THROUGH_COLOR
            width = min_thickness
        draw.rectangle(box, outline=color + (255,), width=width)
        if n.get("highlighted"):
            highlight_box = box
        if label:
            text = f"{n.get('path') or n['id']} {n.get('tag') or ''}".strip()
            tx, ty = box[0] + 2, max(0, box[1] - 10)
            draw.text((tx + 1, ty + 1), text, font=font, fill=(0, 0, 0, 255))
            draw.text((tx, ty), text, font=font, fill=(255, 255, 255, 255))
        drawn += 1
    # 高亮框最后画，避免被覆盖
    if highlight_box:
        draw.rectangle(highlight_box, outline=HIGHLIGHT_COLOR + (255,), width=max_thickness + 2)

    out = Image.alpha_composite(img, overlay).convert("RGB")
    out.save(out_path)
    return drawn


def _cli() -> int:
    import argparse
    p = argparse.ArgumentParser(description="Draw reduced-tree boxes on a viewport screenshot")
    p.add_argument("--dir", required=True, help="Run directory: workspace/extract/<domain>/<ts>")
    p.add_argument("--image", default="screenshot.png")
    p.add_argument("--tree", default="tree.json")
    p.add_argument("--out", default=None, help="Output file (default: <image>_overlay.png)")
    p.add_argument("--min-thickness", type=int, default=1)
    p.add_argument("--max-thickness", type=int, default=5)
    p.add_argument("--label", action="store_true", help="Draw node path/tag labels")
    args = p.parse_args()

    image_path = os.path.join(args.dir, args.image)
    tree_path = os.path.join(args.dir, args.tree)
    out_path = args.out or os.path.splitext(image_path)[0] + "_overlay.png"
    draw_tree_overlay(
        image_path,
        tree_path,
        out_path,
        min_thickness=args.min_thickness,
        max_thickness=args.max_thickness,
        label=args.label,
    )
    print(out_path)
    return 0


if __name__ == "__main__":
    raise SystemExit(_cli())
