"""
extract.constants
常量定义。
"""

DEFAULT_VIEWPORT = {"width": 1280, "height": 800}
EXTRACT_FORMAT_VERSION = "v0.1"

# 只有这些标签可能成为“内容容器”
TARGET_TAGS = ("article", "section", "div")

# 页面元素上的标记类名（展示层只读）
MARKERS = {
    "highlighted": "page-extract-highlight",
    "selected": "page-extract-selected",
    "recent": "page-extract-recent",
}

# 启发式档位名称
PROFILE_CENTER = "center"
PROFILE_IN_BOUNDS = "in_bounds"

# 产物文件名映射
ARTIFACTS = {
    "screenshot": "screenshot.png",
    "screenshot_overlay": "screenshot_overlay.png",
    "tree": "tree.json",
    "selected": "selected.json",
    "meta": "meta.json",
}
