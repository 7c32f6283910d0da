"""
Playwright browser/page setup used by the extraction CLI.

Usage:
  from browser.env import open_page
  with open_page(url, headless=False, viewport=(1280, 800)) as page:
      session = OverlaySession(PageDocument(page))

远程浏览器支持：
  - AFC_BROWSER_BACKEND=remote_ws 且设置 AFC_PLAYWRIGHT_REMOTE_WS / AFC_PLAYWRIGHT_WS_URL
    → pw.chromium.connect(<WS URL>)，连接已运行的 Playwright 服务；
  - AFC_BROWSER_BACKEND=cdp 且设置 AFC_PLAYWRIGHT_CDP_URL / AFC_PLAYWRIGHT_REMOTE_CDP
    → connect_over_cdp，复用已打开的有头 Chrome 及其当前页面（在用户正在看的页面上抽取）。
"""

from __future__ import annotations

import json as _json
import logging
import os
import urllib.request as _urllib_request
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from playwright.sync_api import sync_playwright

from extract.constants import DEFAULT_VIEWPORT
from extract.errors import ExtractError

logger = logging.getLogger(__name__)


def make_context_args(
    pw,
    device_name: Optional[str],
    viewport_tuple: Optional[Tuple[int, int]],
    dpr: Optional[float],
    warnings: List[dict],
) -> Dict[str, Any]:
    """根据设备名/自定义视口/DPR 生成 BrowserContext 的参数字典。

    - device_name 存在于 pw.devices 时以其描述为基底；
    - viewport_tuple 与 dpr 显式提供时覆盖设备描述；
    - 最终未设置 viewport 时回退为 DEFAULT_VIEWPORT；
    - 找不到设备只记录到 warnings。
    """
    args: Dict[str, Any] = {}
    if device_name:
        descriptor = pw.devices.get(device_name)
        if descriptor:
            args.update(descriptor)
        else:
            warnings.append({"code": "DEVICE_NOT_FOUND", "stage": "launch", "device": device_name})
    if viewport_tuple:
        args["viewport"] = {"width": int(viewport_tuple[0]), "height": int(viewport_tuple[1])}
    if dpr is not None:
        args["device_scale_factor"] = float(dpr)
    if "viewport" not in args:
        args["viewport"] = dict(DEFAULT_VIEWPORT)
    return args


def _resolve_cdp_ws_url(endpoint: str) -> str:
    """给定一个 CDP 端点，尽力解析出可用的 webSocketDebuggerUrl。

      - http://host:9222 → 通过 /json/version 解析
      - ws://host:9222/... → 直接返回
    """
    ep = (endpoint or "").strip()
    if ep.startswith("ws://") or ep.startswith("wss://"):
        return ep
    if not ep.startswith("http://") and not ep.startswith("https://"):
        return f"ws://{ep}"
    try:
        url = ep.rstrip("/") + "/json/version"
        with _urllib_request.urlopen(url, timeout=3.0) as resp:
            data = resp.read().decode("utf-8", errors="ignore")
        meta = _json.loads(data) if data else {}
        ws = meta.get("webSocketDebuggerUrl") or ""
        if isinstance(ws, str) and ws.strip():
            return ws.strip()
    except (OSError, ValueError) as e:
        logger.warning("cannot resolve CDP endpoint %s: %s", ep, e)
    return ep


@contextmanager
def open_page(
    url: Optional[str] = None,
    *,
    headless: bool = True,
    slow_mo: Optional[int] = None,
    timeout_ms: int = 45000,
    wait_until: str = "load",
    device: Optional[str] = None,
    viewport: Optional[Tuple[int, int]] = None,
    dpr: Optional[float] = None,
    warnings: Optional[List[dict]] = None,
    auto_close: bool = True,
) -> Iterator[Any]:
    """Yield a ready Playwright page, navigated to ``url`` when given."""
    warns = warnings if warnings is not None else []
    with sync_playwright() as pw:
        backend = os.getenv("AFC_BROWSER_BACKEND", "local").strip().lower()
        remote_ws = os.getenv("AFC_PLAYWRIGHT_REMOTE_WS") or os.getenv("AFC_PLAYWRIGHT_WS_URL")
        cdp_url = os.getenv("AFC_PLAYWRIGHT_CDP_URL") or os.getenv("AFC_PLAYWRIGHT_REMOTE_CDP")
        use_cdp = backend in {"cdp", "remote_cdp"} and bool(cdp_url)

        if backend in {"remote_ws", "remote", "connect"} and remote_ws:
            browser = pw.chromium.connect(remote_ws)
        elif use_cdp:
            browser = pw.chromium.connect_over_cdp(_resolve_cdp_ws_url(cdp_url))
        else:
            browser = pw.chromium.launch(headless=headless, slow_mo=(slow_mo or 0))

        # CDP 模式复用现有 context/page，在当前界面上抽取
        if use_cdp and browser.contexts:
            context = browser.contexts[0]
        else:
            context = browser.new_context(**make_context_args(pw, device, viewport, dpr, warns))
        if use_cdp and context.pages:
            page = context.pages[0]
        else:
            page = context.new_page()
        page.set_default_timeout(int(timeout_ms))
        try:
            if url:
                try:
                    page.goto(url, wait_until=wait_until, timeout=int(timeout_ms))
                except Exception as e:
                    raise ExtractError(code="NAV_FAILED", stage="navigate", message=f"cannot open {url}: {e}", original=e) from e
            yield page
        finally:
            if auto_close:
                if not use_cdp:
                    try:
                        page.close()
                        context.close()
                    except Exception as e:
                        logger.debug("page/context close failed: %s", e)
                # CDP 模式下保持远程 Chrome 打开，只断开连接
                try:
                    browser.close()
                except Exception as e:
                    logger.debug("browser close failed: %s", e)
