#!/usr/bin/env python3
"""
AiIRIS-codegen CLI — Figma 設計 → 元件程式碼

  python -m airis_codegen.cli generate design.json --framework react   # 本機 JSON
  python -m airis_codegen.cli generate --file-key KEY [--node-id ID]   # Figma API
  python -m airis_codegen.cli tokens design.json                        # 只萃取 design tokens
  python -m airis_codegen.cli watch design.json                         # 檔案變更時重新產生
"""

import argparse
import asyncio
import json
import logging
import os
import threading
import time
from pathlib import Path
from typing import Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from . import __version__
from .config import VALID_FRAMEWORKS, VALID_STYLING, GenerationConfig, config_section, load_config
from .design_extractor import extract_design
from .errors import CodegenError
from .figma_reader import FigmaAPIClient, describe_http_error, load_design
from .models import GeneratedArtifact
from .orchestrator import GenerationOrchestrator
from .task_dispatcher import TaskDispatcher

DEFAULT_CONFIG = "figma-codegen.config.json"
DEFAULT_OUTPUT = "./generated"
REPORT_NAME = "generation-report.json"

_STATUS_ICONS = {"success": "✅", "warning": "⚠️ ", "error": "❌"}


# ════════════════════════════════════════════════════════════
# Helpers
# ════════════════════════════════════════════════════════════

def resolve_generation_config(args, config: dict) -> GenerationConfig:
    """設定檔 generation 區塊為基礎，CLI 參數覆寫."""
    gen = GenerationConfig.from_dict(config_section(config, "generation"))
    if getattr(args, "framework", None):
        gen.framework = args.framework
    if getattr(args, "styling", None):
        gen.styling = args.styling
    if getattr(args, "javascript", False):
        gen.typescript = False
    if getattr(args, "tests", False):
        gen.testing.unit_tests = True
    if getattr(args, "docs", False):
        gen.documentation = True
    return gen


def read_document(args, config: dict) -> Optional[dict]:
    """從本機檔案或 Figma API 取得設計文件；失敗時印出訊息並回傳 None."""
    if getattr(args, "design", None):
        try:
            return load_design(args.design)
        except CodegenError as e:
            print(f"❌ {e}")
            return None

    figma_cfg = config_section(config, "figma")
    token = figma_cfg.get("personalAccessToken") or os.environ.get("FIGMA_TOKEN")
    file_key = getattr(args, "file_key", None) or figma_cfg.get("fileKey")
    node_id = getattr(args, "node_id", None) or figma_cfg.get("nodeId")

    if not file_key:
        print("❌ 請指定設計 JSON 檔，或使用 --file-key / config 的 figma.fileKey。")
        return None
    if not token:
        print(f"❌ 請設定 FIGMA_TOKEN 環境變數，或在 {DEFAULT_CONFIG} 的 figma.personalAccessToken 設定。")
        print("   取得方式：Figma → Settings → Personal access tokens → 新增")
        return None

    print(f"📥 Fetching Figma file: {file_key}")
    client = FigmaAPIClient(token)
    try:
        return client.get_document(file_key, node_id)
    except CodegenError as e:
        print(f"❌ {e}")
    except Exception as e:
        print(f"❌ {describe_http_error(e, file_key)}")
    return None


def write_artifact(artifact: GeneratedArtifact, output_dir: str) -> list:
    """把記憶體中的檔案寫到輸出目錄，並附上 generation-report.json."""
    base = Path(output_dir)
    written = []
    for f in artifact.files:
        path = base / f.path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f.content, encoding="utf-8")
        written.append(str(path))

    report = artifact.to_dict()
    for f in report["files"]:
        f.pop("content", None)
    report_path = base / REPORT_NAME
    base.mkdir(parents=True, exist_ok=True)
    with open(report_path, "w", encoding="utf-8") as fh:
        json.dump(report, fh, indent=2, ensure_ascii=False)
    written.append(str(report_path))
    return written


def _print_progress(percent: int, message: str) -> None:
    print(f"   [{percent:3d}%] {message}")


async def run_generation(document: dict, gen: GenerationConfig, timeout: float, use_cache: bool = True,
                         orchestrator: Optional[GenerationOrchestrator] = None) -> GeneratedArtifact:
    if orchestrator is not None:
        return await orchestrator.generate(document, gen, progress=_print_progress, use_cache=use_cache)
    async with GenerationOrchestrator(dispatcher=TaskDispatcher(timeout=timeout)) as orch:
        return await orch.generate(document, gen, progress=_print_progress, use_cache=use_cache)


def _report(artifact: GeneratedArtifact, written: list) -> None:
    icon = _STATUS_ICONS.get(artifact.build_status, "ℹ️ ")
    print(f"{icon} Build {artifact.build_status} — session {artifact.id}")
    print(f"   Quality: {artifact.quality.overall:.1f} / 100")
    for name, score in artifact.quality.categories.items():
        print(f"     - {name:<16} {score:5.1f}")
    for opt in artifact.optimizations:
        print(f"   🔧 {opt}")
    for log in artifact.build_logs:
        if log.level != "info":
            where = f" ({log.file})" if log.file else ""
            print(f"   ⚠️  [{log.level}] {log.message}{where}")
    print(f"   📄 {len(written) - 1} files written, report: {written[-1]}")


# ════════════════════════════════════════════════════════════
# Commands
# ════════════════════════════════════════════════════════════

def cmd_generate(args, config: dict) -> int:
    """Generate: 設計文件 → 元件檔案 + 報告."""
    document = read_document(args, config)
    if document is None:
        return 1

    gen = resolve_generation_config(args, config)
    output_dir = args.output or config_section(config, "output").get("dir") or DEFAULT_OUTPUT
    print(f"🚀 Generating {gen.framework} component ({'TypeScript' if gen.typescript else 'JavaScript'})")

    try:
        artifact = asyncio.run(run_generation(document, gen, args.timeout))
    except Exception as e:
        print(f"❌ Generate failed: {e}")
        return 1

    try:
        written = write_artifact(artifact, output_dir)
    except OSError as e:
        print(f"❌ 無法寫入輸出目錄 {output_dir}：{e}")
        return 1
    _report(artifact, written)
    return 0 if artifact.build_status != "error" else 2


def cmd_tokens(args, config: dict) -> int:
    """Tokens: 只萃取 design tokens 並輸出 JSON."""
    document = read_document(args, config)
    if document is None:
        return 1
    try:
        scene, tokens = extract_design(document)
    except CodegenError as e:
        print(f"❌ {e}")
        return 1

    payload = json.dumps(tokens.to_dict(), indent=2, ensure_ascii=False)
    if args.output:
        try:
            Path(args.output).parent.mkdir(parents=True, exist_ok=True)
            Path(args.output).write_text(payload + "\n", encoding="utf-8")
        except OSError as e:
            print(f"❌ 無法寫入 {args.output}：{e}")
            return 1
        print(f"✅ {len(scene.shapes)} shapes, tokens saved to {args.output}")
    else:
        print(payload)
    return 0


class ChangeHandler(FileSystemEventHandler):
    """設計檔變更事件處理器，帶 debounce 防抖。"""

    def __init__(self, callback, loop: asyncio.AbstractEventLoop, target: str, debounce: float = 1.0):
        self.callback = callback
        self.loop = loop
        self.target = os.path.abspath(target)
        self.last_trigger = 0.0
        self.debounce_seconds = debounce

    def on_modified(self, event):
        if event.is_directory:
            return
        if os.path.abspath(event.src_path) != self.target:
            return
        current_time = time.time()
        if current_time - self.last_trigger < self.debounce_seconds:
            return
        self.last_trigger = current_time
        print(f"\n🔄 Design changed: {event.src_path}")
        asyncio.run_coroutine_threadsafe(self.callback(), self.loop)


def cmd_watch(args, config: dict) -> int:
    """Watch: 監聽設計 JSON，變更時自動重新產生."""
    design = args.design
    if not os.path.exists(design):
        print(f"❌ 找不到設計檔：{design}")
        return 1

    gen = resolve_generation_config(args, config)
    output_dir = args.output or config_section(config, "output").get("dir") or DEFAULT_OUTPUT
    watch_dir = os.path.dirname(os.path.abspath(design))
    print(f"👀 Watching '{design}' for changes...")
    print(f"   Output: {output_dir}")
    print("   Press Ctrl+C to stop.")

    # 在獨立執行緒中運行 event loop，watchdog 執行緒以 threadsafe 方式投遞
    loop = asyncio.new_event_loop()
    orchestrator = GenerationOrchestrator(dispatcher=TaskDispatcher(timeout=args.timeout))

    async def regenerate():
        try:
            document = load_design(design)
            # 檔案內容改變時 fingerprint 也會改變，快取不會擋住重新產生
            artifact = await run_generation(document, gen, args.timeout, orchestrator=orchestrator)
        except Exception as e:
            print(f"   ❌ Generate failed: {e}")
            return
        try:
            written = write_artifact(artifact, output_dir)
        except OSError as e:
            print(f"   ❌ 無法寫入輸出目錄 {output_dir}：{e}")
            return
        _report(artifact, written)

    def run_loop():
        asyncio.set_event_loop(loop)
        loop.run_forever()

    loop_thread = threading.Thread(target=run_loop, daemon=True)
    loop_thread.start()
    asyncio.run_coroutine_threadsafe(orchestrator.start(), loop).result(timeout=10)

    future = asyncio.run_coroutine_threadsafe(regenerate(), loop)
    try:
        future.result(timeout=120)
    except Exception as e:
        print(f"   ⚠️  Initial generate failed: {e}")

    event_handler = ChangeHandler(regenerate, loop, design)
    observer = Observer()
    observer.schedule(event_handler, path=watch_dir, recursive=False)
    observer.start()

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\n👋 Stopping watch...")
        observer.stop()
    finally:
        observer.join()
        asyncio.run_coroutine_threadsafe(orchestrator.close(), loop).result(timeout=10)
        loop.call_soon_threadsafe(loop.stop)
    return 0


# ════════════════════════════════════════════════════════════
# Entry point
# ════════════════════════════════════════════════════════════

def _add_generation_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--framework", choices=sorted(VALID_FRAMEWORKS), help="Target framework")
    p.add_argument("--styling", choices=sorted(VALID_STYLING), help="Styling approach")
    p.add_argument("--javascript", action="store_true", help="Emit JavaScript instead of TypeScript")
    p.add_argument("--tests", action="store_true", help="Emit a unit test file")
    p.add_argument("--docs", action="store_true", help="Emit a README")
    p.add_argument("--output", "-o", help="Output directory")
    p.add_argument("--timeout", type=float, default=30.0, help="Background task timeout (seconds)")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="AiIRIS-codegen: Figma design → component code",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", "-c", default=DEFAULT_CONFIG, help="Config path")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command")

    gen_p = sub.add_parser("generate", help="Design → component files",
        epilog="Examples:\n  figma-codegen generate design.json --framework vue\n  figma-codegen generate --file-key ABC123 --node-id 1:2 --tests",
        formatter_class=argparse.RawDescriptionHelpFormatter)
    gen_p.add_argument("design", nargs="?", help="Local design JSON (Figma file response or node)")
    gen_p.add_argument("--file-key", help="Figma file key")
    gen_p.add_argument("--node-id", help="Only generate from this node")
    _add_generation_args(gen_p)

    tok_p = sub.add_parser("tokens", help="Extract design tokens only",
        epilog="Examples:\n  figma-codegen tokens design.json\n  figma-codegen tokens --file-key ABC123 -o tokens.json",
        formatter_class=argparse.RawDescriptionHelpFormatter)
    tok_p.add_argument("design", nargs="?", help="Local design JSON")
    tok_p.add_argument("--file-key", help="Figma file key")
    tok_p.add_argument("--node-id", help="Only extract from this node")
    tok_p.add_argument("--output", "-o", help="Write tokens JSON to this path")

    watch_p = sub.add_parser("watch", help="Regenerate when the design JSON changes",
        epilog="Examples:\n  figma-codegen watch design.json --framework react -o ./out",
        formatter_class=argparse.RawDescriptionHelpFormatter)
    watch_p.add_argument("design", help="Local design JSON to watch")
    _add_generation_args(watch_p)

    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_config(args.config)
    except CodegenError as e:
        print(f"❌ {e}")
        return 1

    if args.command == "generate":
        return cmd_generate(args, config)
    if args.command == "tokens":
        return cmd_tokens(args, config)
    if args.command == "watch":
        return cmd_watch(args, config)
    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
