from __future__ import annotations

import argparse
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console

from .core.errors import ClipvaultError
from .ingest.object_key import new_object_key
from .ingest.orientation import classify_orientation
from .ingest.probe import FFPROBE_BINARY, probe_media
from .ingest.remux import FFMPEG_BINARY, remux_for_fast_start
from .ingest.sniff import SNIFF_LEN, detect_content_type

console = Console()


def main(argv: Optional[list[str]] = None) -> None:
    """The main entry point for the CLI.

    Args:
        argv: The command-line arguments.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "check", False):
        _run_environment_check()
        return

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    args.func(args)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Clipvault media developer CLI")
    parser.add_argument("--check", action="store_true", help="Validate presence of ffmpeg/ffprobe dependencies")

    subparsers = parser.add_subparsers(dest="command")

    probe_parser = subparsers.add_parser("probe", help="Sniff and probe a file, print geometry, orientation and a sample key")
    probe_parser.add_argument("--file", required=True, help="Path to the source media file")
    probe_parser.set_defaults(func=_cmd_probe)

    remux_parser = subparsers.add_parser("remux", help="Write a fast-start copy next to the source file")
    remux_parser.add_argument("--file", required=True, help="Path to the source media file")
    remux_parser.add_argument("--output", help="Move the fast-start copy here instead of '<file>.processing'")
    remux_parser.set_defaults(func=_cmd_remux)
    return parser


def _cmd_probe(args: argparse.Namespace) -> None:
    media_path = _existing_file(args.file)
    with media_path.open("rb") as handle:
        sniffed = detect_content_type(handle.read(SNIFF_LEN))

    try:
        geometry = probe_media(media_path)
    except ClipvaultError as exc:
        console.print(f"[red]{exc.code}:[/] {exc.message}")
        sys.exit(3)

    orientation = classify_orientation(geometry.display_aspect_ratio)
    console.print_json(
        data={
            "file": str(media_path),
            "content_type": sniffed,
            "width": geometry.width,
            "height": geometry.height,
            "display_aspect_ratio": geometry.display_aspect_ratio,
            "orientation": orientation,
            "sample_key": new_object_key(orientation),
        }
    )


def _cmd_remux(args: argparse.Namespace) -> None:
    media_path = _existing_file(args.file)
    try:
        output = remux_for_fast_start(media_path)
    except ClipvaultError as exc:
        console.print(f"[red]{exc.code}:[/] {exc.message}")
        sys.exit(3)

    if args.output:
        target = Path(args.output).expanduser().resolve()
        shutil.move(str(output), str(target))
        output = target
    console.print(f"[green]Fast-start copy written to {output}[/]")


def _existing_file(raw: str) -> Path:
    media_path = Path(raw).expanduser().resolve()
    if not media_path.is_file():
        console.print(f"[red]File not found: {media_path}[/]")
        sys.exit(2)
    return media_path


def _run_environment_check() -> None:
    """Check for the presence of required external dependencies."""
    results = {}
    for binary in (FFMPEG_BINARY, FFPROBE_BINARY):
        try:
            subprocess.run([binary, "-version"], stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, check=True)
            results[binary] = True
        except (OSError, subprocess.CalledProcessError):
            results[binary] = False

    console.rule("[bold]Environment Check")
    for label, ok in results.items():
        console.print(f"[bold]{label}[/]: {'ok' if ok else 'missing'}")

    if not all(results.values()):
        console.print("[red]Missing dependencies detected. Install ffmpeg (ffprobe ships with it).[/]")
        sys.exit(1)
    console.print("[green]Environment looks good![/]")


if __name__ == "__main__":
    main()
