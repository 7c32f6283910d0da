"""
extract.utils
一次抽取运行用到的小工具：产物目录、JSON 读写、命令行参数校验，以及页面元素引用的释放。
"""

from __future__ import annotations

import json
import logging
import os
import re
from datetime import datetime
from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import urlparse

from .errors import ExtractError

logger = logging.getLogger(__name__)

_VIEWPORT_RE = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")


def make_run_dir(url: str, out_root: str, *, now: Optional[datetime] = None) -> str:
    """创建 <out_root>/<host>/<YYYYMMDDHHMMSS>；同一秒内的重复运行追加 -1、-2 后缀。

    host 取 URL 主机名（去掉 www.，非字母数字折叠为 _）；file: 页面归到 "local"。
    """
    host = (urlparse(url).hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    key = re.sub(r"[^0-9a-z]+", "_", host).strip("_") or "local"
    base = os.path.join(out_root, key, (now or datetime.now()).strftime("%Y%m%d%H%M%S"))
    path, n = base, 0
    while os.path.exists(path):
        n += 1
        path = f"{base}-{n}"
    os.makedirs(path)
    return path


def write_json(path: str, obj: Any) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2)


def load_json_config(path: Optional[str]) -> Dict[str, Any]:
    """读取 JSON 配置；文件缺失返回空 dict，内容不是对象或无法解析时记警告后同样返回空 dict。"""
    if not path or not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("ignoring unreadable config %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring config %s: top level is not an object", path)
        return {}
    return data


def validate_url(url: str) -> None:
    """只接受 http/https 页面与带路径的 file: 页面。"""
    parsed = urlparse(url)
    if parsed.scheme == "file" and parsed.path:
        return
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ExtractError(code="INVALID_URL", stage="init", message=f"unsupported url: {url}")


def parse_viewport(viewport: Union[str, Tuple[Any, Any], None]) -> Optional[Tuple[int, int]]:
    """"1280x800" 或 (1280, 800) → (1280, 800)；无法解析时返回 None，由浏览器端使用缺省视口。"""
    if isinstance(viewport, (tuple, list)) and len(viewport) == 2:
        try:
            return int(viewport[0]), int(viewport[1])
        except (TypeError, ValueError):
            return None
    m = _VIEWPORT_RE.match(viewport) if isinstance(viewport, str) else None
    return (int(m.group(1)), int(m.group(2))) if m else None


def release_element(element) -> None:
    """释放宿主侧的元素引用（如 Playwright 句柄）；没有 release() 的元素直接忽略。"""
    release = getattr(element, "release", None)
    if not callable(release):
        return
    try:
        release()
    except Exception as e:
        # 页面已关闭或句柄已失效时 dispose 会失败，引用本就不再存活
        logger.debug("release failed: %s", e)
