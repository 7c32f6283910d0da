"""
extract.config

集中管理抽取相关配置。优先级：显式覆盖 > JSON 配置文件 > 环境变量 AFC_EXTRACT_<NAME> > 缺省值。
未知键忽略；非法取值回退为缺省值。
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional, Tuple

from .constants import MARKERS, PROFILE_CENTER, PROFILE_IN_BOUNDS, TARGET_TAGS
from .qualifier import HeuristicProfile, profile_for
from .utils import load_json_config

logger = logging.getLogger(__name__)

ENV_PREFIX = "AFC_EXTRACT_"
KNOWN_PROFILES = (PROFILE_CENTER, PROFILE_IN_BOUNDS)


def _cast_like(value: Any, default: Any) -> Any:
    if value is None:
        return default
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        try:
            return int(value)
        except (TypeError, ValueError):
            return default
    if isinstance(default, float):
        try:
            return float(value)
        except (TypeError, ValueError):
            return default
    if isinstance(default, tuple):
        if isinstance(value, str):
            items = [x.strip() for x in value.split(",") if x.strip()]
        elif isinstance(value, (list, tuple)):
            items = [str(x).strip() for x in value if str(x).strip()]
        else:
            return default
        return tuple(items) or default
    return str(value)


def _cast_optional_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass
class ExtractConfig:
    profile: str = PROFILE_CENTER
    min_width: Optional[float] = None
    min_height: Optional[float] = None
    require_width: bool = True
    track_own_text: bool = True
    target_tags: Tuple[str, ...] = TARGET_TAGS
    root_selector: str = "body"
    marker_highlighted: str = MARKERS["highlighted"]
    marker_selected: str = MARKERS["selected"]
    marker_recent: str = MARKERS["recent"]
    verbose: bool = True

    @classmethod
    def _names(cls):
        return [f.name for f in fields(cls)]

    def update(self, values: Dict[str, Any]) -> "ExtractConfig":
        """按同名字段覆盖；数值阈值允许为空。"""
        for name in self._names():
            if name not in values:
                continue
            v = values[name]
            if name in ("min_width", "min_height"):
                setattr(self, name, _cast_optional_number(v))
            else:
                setattr(self, name, _cast_like(v, getattr(self, name)))
        self.profile = str(self.profile).strip().lower()
        if self.profile not in KNOWN_PROFILES:
            logger.warning("unknown profile %r, using %r", self.profile, PROFILE_CENTER)
            self.profile = PROFILE_CENTER
        return self

    @classmethod
    def from_dict(cls, values: Optional[Dict[str, Any]]) -> "ExtractConfig":
        return cls().update(values or {})

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "ExtractConfig":
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for name in cls._names():
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is not None:
                values[name] = raw
        return cls.from_dict(values)

    def heuristic_profile(self) -> HeuristicProfile:
        return profile_for(
            self.profile,
            min_width=self.min_width,
            min_height=self.min_height,
            require_width=self.require_width,
        )

    def markers(self) -> Dict[str, str]:
        return {
            "highlighted": self.marker_highlighted,
            "selected": self.marker_selected,
            "recent": self.marker_recent,
        }


def load_config(
    path: Optional[str] = None,
    *,
    overrides: Optional[Dict[str, Any]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> ExtractConfig:
    """环境变量 → JSON 文件 → 显式覆盖，逐层合并。"""
    cfg = ExtractConfig.from_env(environ)
    cfg.update(load_json_config(path))
    if overrides:
        cfg.update({k: v for k, v in overrides.items() if v is not None})
    return cfg
