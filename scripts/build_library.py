#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import Any


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


def _bootstrap_pythonpath() -> None:
    import sys

    src = _repo_root() / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))


_bootstrap_pythonpath()

from plugin_copy_proxy.config import get_settings  # noqa: E402
from plugin_copy_proxy.workflow.library import ContentLibraryBuilder  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate the healthcare content library offline.")
    parser.add_argument(
        "--output",
        default="",
        help="JSON output path. Default: content/library_<timestamp>.json",
    )
    parser.add_argument(
        "--specialties",
        default="",
        help="Comma-separated specialties. Default: BATCH_SPECIALTIES from settings.",
    )
    parser.add_argument("--batch-size", type=int, default=0, help="Records per specialty (0 means settings default).")
    parser.add_argument("--no-cross-specialty", action="store_true", help="Skip the cross-specialty batch.")
    return parser.parse_args()


def summarize(library: dict[str, Any]) -> str:
    lines = [f"[library] total={library['metadata']['totalVariations']}"]
    for specialty, records in library["content"].items():
        fallback = sum(1 for record in records if record.get("source") == "fallback")
        lines.append(f"[library] {specialty}: records={len(records)} fallback={fallback}")
    return "\n".join(lines)


async def main() -> int:
    args = parse_args()
    settings = get_settings()
    api_key = settings.require_api_key()
    specialties = [item.strip() for item in args.specialties.split(",") if item.strip()] or None

    builder = ContentLibraryBuilder(settings)
    library = await builder.build(
        api_key,
        specialties=specialties,
        batch_size=args.batch_size or None,
        include_cross_specialty=not args.no_cross_specialty,
    )

    now = datetime.now().strftime("%Y%m%d_%H%M%S")
    output = Path(args.output) if args.output else Path(f"content/library_{now}.json")
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(library, ensure_ascii=False, indent=2), encoding="utf-8")

    print(summarize(library))
    print(f"[library] json={output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
