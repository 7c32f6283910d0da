"""
Extract | Python + Playwright 内容块抽取入口

接口：
    run(url: str, out_root: str = "workspace/extract", ...) -> dict

产物目录：<out_root>/<domain_sanitized>/<YYYYMMDDHHMMSS>/
    - tree.json               （归约树 + 交互状态）
    - selected.json           （已选节点）
    - screenshot.png          （视口截图）
    - screenshot_overlay.png  （归约树打框）
    - meta.json               （URL/视口/档位/警告等）

交互：--click/--select/--collapse PATH 按命令行顺序依次作用于节点（PATH 形如 0.1.2）；
--interactive 进入命令循环（show / click P / select P / expand P / export / rescan / quit）。

需要浏览器内核：`python -m playwright install chromium`。
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import shlex
import sys
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from browser.env import open_page
from browser.live import PageDocument

from .config import ExtractConfig, load_config
from .constants import ARTIFACTS, EXTRACT_FORMAT_VERSION
from .errors import ExtractError
from .export import format_tree
from .overlay import draw_tree_overlay
from .reducer import iter_nodes
from .selection import TARGET_BODY, TARGET_EXPAND, TARGET_SELECT
from .session import OverlaySession
from .utils import make_run_dir, parse_viewport, validate_url, write_json

logger = logging.getLogger("extract")

_ACTION_TARGETS = {
    "click": TARGET_BODY,
    "select": TARGET_SELECT,
    "collapse": TARGET_EXPAND,
    "expand": TARGET_EXPAND,
}


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="[extract] %(message)s",
    )
    for name in ("asyncio", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)


def _snapshot(page, session: OverlaySession, out_dir: str, *, label: bool = False) -> Dict[str, Any]:
    """写出 tree.json / selected.json / 截图 / 打框截图。"""
    paths: Dict[str, Any] = dict(session.export(out_dir, meta={"url": page.url}))
    shot = os.path.join(out_dir, ARTIFACTS["screenshot"])
    try:
        page.screenshot(path=shot, full_page=False)
        paths["screenshot"] = shot
    except Exception as e:
        logger.warning("screenshot failed: %s", e)
        return paths
    overlay_path = os.path.join(out_dir, ARTIFACTS["screenshot_overlay"])
    try:
        draw_tree_overlay(shot, paths["tree"], overlay_path, label=label)
        paths["screenshot_overlay"] = overlay_path
    except (OSError, ValueError) as e:
        logger.warning("overlay failed: %s", e)
    return paths


def _apply_actions(session: OverlaySession, actions: Sequence[Tuple[str, str]]) -> None:
    for kind, path in actions:
        session.dispatch(path, _ACTION_TARGETS[kind])
        logger.info("%s %s", kind, path)


def _interactive(page, session: OverlaySession, out_dir: str, *, label: bool, stdin=None, stdout=None) -> None:
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    help_text = "commands: show | click P | select P | expand P | export | rescan | quit"
    print(help_text, file=stdout)
    for raw in stdin:
        try:
            parts = shlex.split(raw.strip())
        except ValueError as e:
            print(f"{e}; {help_text}", file=stdout)
            continue
        if not parts:
            continue
        cmd, args = parts[0].lower(), parts[1:]
        try:
            if cmd in ("quit", "exit", "q"):
                break
            if cmd == "show":
                print(format_tree(session.tree, session.machine), file=stdout)
            elif cmd in _ACTION_TARGETS and args:
                session.dispatch(args[0], _ACTION_TARGETS[cmd])
                print(format_tree(session.tree, session.machine), file=stdout)
            elif cmd == "export":
                print(json.dumps(_snapshot(page, session, out_dir, label=label), ensure_ascii=False), file=stdout)
            elif cmd == "rescan":
                session.extract_now()
                print(format_tree(session.tree, session.machine), file=stdout)
            else:
                print(help_text, file=stdout)
        except ExtractError as e:
            print(str(e), file=stdout)


def run(
    url: str,
    out_root: str = "workspace/extract",
    *,
    config: Optional[ExtractConfig] = None,
    timeout_ms: int = 45000,
    wait_until: str = "load",
    after_nav_wait_ms: int = 1000,
    headless: bool = True,
    device: Optional[str] = None,
    viewport: Any = None,
    dpr: Optional[float] = None,
    actions: Sequence[Tuple[str, str]] = (),
    interactive: bool = False,
    label: bool = False,
    keep_markers: bool = False,
) -> Dict[str, Any]:
    """Open ``url``, extract the reduced tree, apply actions and write artifacts.

    Returns a summary dict with the run directory, node counts and artifact paths.
    """
    cfg = config or ExtractConfig()
    validate_url(url)
    started = time.time()
    out_dir = make_run_dir(url, out_root)
    logger.info("out_dir=%s", out_dir)
    warnings: List[dict] = []

    with open_page(
        url,
        headless=headless,
        timeout_ms=timeout_ms,
        wait_until=wait_until,
        device=device,
        viewport=parse_viewport(viewport),
        dpr=dpr,
        warnings=warnings,
    ) as page:
        if after_nav_wait_ms > 0:
            page.wait_for_timeout(int(after_nav_wait_ms))
        session = OverlaySession(PageDocument(page, cfg.root_selector), cfg)
        try:
            session.extract_now()
            print(format_tree(session.tree, session.machine))
            try:
                _apply_actions(session, actions)
            except ExtractError as e:
                e.out_dir = out_dir
                raise
            if interactive:
                _interactive(page, session, out_dir, label=label)
            paths = _snapshot(page, session, out_dir, label=label)
            vp = session.document.viewport()
            summary = {
                "url": url,
                "final_url": page.url,
                "title": page.title(),
                "out_dir": out_dir,
                "version": EXTRACT_FORMAT_VERSION,
                "profile": cfg.profile,
                "viewport": {"width": vp.width, "height": vp.height},
                "found": session.tree is not None,
                "nodes": sum(1 for _ in iter_nodes(session.tree)),
                "selected": len(session.machine.selected_nodes()) if session.machine else 0,
                "warnings": warnings + session.warnings,
                "elapsed_ms": int((time.time() - started) * 1000),
                "artifacts": paths,
            }
            write_json(os.path.join(out_dir, ARTIFACTS["meta"]), summary)
        finally:
            if not keep_markers:
                session.dismiss()
    return summary


class _ActionAppend(argparse.Action):
    """把 --click/--select/--collapse 按出现顺序收集到同一个列表。"""

    def __call__(self, parser, namespace, values, option_string=None):
        items = list(getattr(namespace, "actions", None) or [])
        items.append((self.const, values))
        setattr(namespace, "actions", items)


def _cli(argv: Optional[Sequence[str]] = None) -> int:
    p = argparse.ArgumentParser(description="Extract content blocks from a live page as a selectable tree.")
    p.add_argument("url", help="Target URL, e.g. https://example.com")
    p.add_argument("--out-root", default="workspace/extract", help="Output root directory (default: workspace/extract)")
    p.add_argument("--config", type=str, default=None, help="Path to JSON config file to override defaults")
    p.add_argument("--profile", choices=["center", "in_bounds"], default=None, help="Heuristic profile (default: center)")
    p.add_argument("--min-width", type=float, default=None, help="Override the profile's minimum width")
    p.add_argument("--min-height", type=float, default=None, help="Override the profile's minimum height")
    p.add_argument("--root-selector", type=str, default=None, help="Scan root selector (default: body)")
    p.add_argument("--no-own-text", dest="track_own_text", action="store_false", default=None, help="Do not aggregate own text")
    p.add_argument("--timeout-ms", type=int, default=45000)
    p.add_argument("--wait-until", default="load", choices=["domcontentloaded", "load", "networkidle", "commit"])
    p.add_argument("--after-nav-wait-ms", type=int, default=1000)
    p.add_argument("--headless", action="store_true", help="Run browser headless (default: headed)")
    p.add_argument("--device", type=str, default=None, help="Playwright device name, e.g. 'iPhone 13'")
    p.add_argument("--viewport", type=str, default=None, help="Viewport WxH, e.g. 1280x800")
    p.add_argument("--dpr", type=float, default=None)
    p.add_argument("--click", dest="actions", action=_ActionAppend, const="click", metavar="PATH", help="Highlight node at PATH (repeatable)")
    p.add_argument("--select", dest="actions", action=_ActionAppend, const="select", metavar="PATH", help="Toggle selection of node at PATH (repeatable)")
    p.add_argument("--collapse", dest="actions", action=_ActionAppend, const="collapse", metavar="PATH", help="Toggle expand state of node at PATH (repeatable)")
    p.add_argument("--interactive", action="store_true", help="Enter an interactive command loop after extraction")
    p.add_argument("--label", action="store_true", help="Label boxes on the overlay screenshot")
    p.add_argument("--keep-markers", action="store_true", help="Leave marker classes on the page when finished")
    p.add_argument("--verbose", dest="verbose", action="store_true", default=None, help="Enable verbose logging (default: on)")
    p.add_argument("--no-verbose", dest="verbose", action="store_false", help="Disable verbose logging")
    args = p.parse_args(argv)

    cfg = load_config(
        args.config,
        overrides={
            "profile": args.profile,
            "min_width": args.min_width,
            "min_height": args.min_height,
            "root_selector": args.root_selector,
            "track_own_text": args.track_own_text,
            "verbose": args.verbose,
        },
    )
    setup_logging(cfg.verbose)
    try:
        summary = run(
            args.url,
            args.out_root,
            config=cfg,
            timeout_ms=args.timeout_ms,
            wait_until=args.wait_until,
            after_nav_wait_ms=args.after_nav_wait_ms,
            headless=args.headless,
            device=args.device,
            viewport=args.viewport,
            dpr=args.dpr,
            actions=args.actions or [],
            interactive=args.interactive,
            label=args.label,
            keep_markers=args.keep_markers,
        )
    except ExtractError as e:
        logger.error("%s", e)
        return 1
    print(json.dumps(summary, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(_cli())
