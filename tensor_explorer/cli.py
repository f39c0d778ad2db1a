"""Command line entry point: collect model files and open the explorer."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .explorer import Explorer, ExplorerError

SUPPORTED_SUFFIXES = (".safetensors", ".gguf")
INDEX_FILE_NAME = "model.safetensors.index.json"


def parse_safetensors_index(index_path: Path) -> list[str]:
    """Return the sorted, distinct shard file names listed in a weight map."""
    try:
        content = Path(index_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ExplorerError(f"Failed to read index file: {index_path}: {exc}") from exc
    try:
        index = json.loads(content)
    except ValueError as exc:
        raise ExplorerError(f"Failed to parse index file: {index_path}: {exc}") from exc

    weight_map = index.get("weight_map") if isinstance(index, dict) else None
    if not isinstance(weight_map, dict):
        return []
    return sorted({name for name in weight_map.values() if isinstance(name, str)})


def collect_files(paths: list[Path], recursive: bool) -> list[Path]:
    """Expand files and directories into a sorted list of model files."""
    files: list[Path] = []
    for path in map(Path, paths):
        if not path.exists():
            print(f"Warning: Path does not exist: {path}", file=sys.stderr)
            continue
        if path.is_file():
            if path.suffix in SUPPORTED_SUFFIXES:
                files.append(path)
            else:
                print(f"Warning: Skipping unsupported file: {path}", file=sys.stderr)
        elif path.is_dir():
            index_path = path / INDEX_FILE_NAME
            if index_path.exists():
                files.extend(
                    path / name
                    for name in parse_safetensors_index(index_path)
                    if (path / name).exists()
                )
            else:
                prefix = "**/" if recursive else ""
                for suffix in SUPPORTED_SUFFIXES:
                    files.extend(sorted(path.glob(f"{prefix}*{suffix}")))
    files.sort()
    return files


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="safetensors-explorer",
        description="Interactive explorer for SafeTensors and GGUF files",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        type=Path,
        help="SafeTensors and GGUF files or directories to explore",
    )
    parser.add_argument(
        "-r",
        "--recursive",
        action="store_true",
        help="Recursively search directories for SafeTensors and GGUF files",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the explorer; returns the process exit status."""
    args = _parser().parse_args(argv)

    if not args.paths:
        print(
            "Error: Please specify one or more SafeTensors or GGUF files or "
            "directories to explore.",
            file=sys.stderr,
        )
        print(
            "Usage: safetensors-explorer <file1.safetensors> [file2.gguf] [directory] ...",
            file=sys.stderr,
        )
        return 1

    try:
        files = collect_files(args.paths, args.recursive)
        if not files:
            print(
                "Error: No SafeTensors or GGUF files found in the specified paths.",
                file=sys.stderr,
            )
            return 1
        Explorer(files).run()
    except ExplorerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())