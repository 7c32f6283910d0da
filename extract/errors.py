"""
extract.errors

ExtractError 终止当前操作（导航失败、未知节点、标记写入失败等）。
单个元素读不到、找不到扫描根这类问题不终止抽取，只记成 warning 字典，
随 meta.json / tree.json 一起输出；两者共用 code/stage 字段。
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class ExtractError(Exception):
    code: str
    stage: str  # init/navigate/scan/select/export
    message: str
    out_dir: Optional[str] = None
    original: Optional[Exception] = None

    def __str__(self) -> str:
        base = f"[{self.code}@{self.stage}] {self.message}"
        if self.out_dir:
            base += f" (out_dir={self.out_dir})"
        return base


def warning(code: str, stage: str, error: Any, tag: str = "") -> Dict[str, str]:
    """非致命问题的记录格式。"""
    return {"code": code, "stage": stage, "tag": tag, "error": str(error)}
