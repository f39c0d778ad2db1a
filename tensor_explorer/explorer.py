"""Loading of model files and the interactive tree browser."""

from __future__ import annotations

import json
import math
import struct
import sys
from pathlib import Path

from blessed import Terminal

from .gguf import GGUFError, GGUFFile
from .tree import (
    GroupNode,
    MetadataInfo,
    MetadataNode,
    TensorInfo,
    TensorNode,
    TreeNode,
    build_tree,
    build_tree_mixed,
    flatten_tree,
    natural_sort_key,
    toggle_node_by_name,
)
from .ui import draw_metadata_detail, draw_screen, draw_tensor_detail

MAX_HEADER_SIZE = 100_000_000
_USIZE_MAX = 2**64 - 1
_F32 = struct.Struct("<f")

_DTYPE_SIZES = {
    "BOOL": 1,
    "U8": 1,
    "I8": 1,
    "F8_E5M2": 1,
    "F8_E4M3": 1,
    "I16": 2,
    "U16": 2,
    "F16": 2,
    "BF16": 2,
    "I32": 4,
    "U32": 4,
    "F32": 4,
    "F64": 8,
    "I64": 8,
    "U64": 8,
}


class ExplorerError(Exception):
    """Raised when a model file cannot be read or parsed."""


def _read_bytes(path: Path) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise ExplorerError(f"Failed to open file: {path}: {exc}") from exc


def _is_count(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _parse_safetensors(data: bytes) -> list[TensorInfo]:
    if len(data) < 8:
        raise ValueError("Header too small")
    header_size = int.from_bytes(data[:8], "little")
    if header_size > MAX_HEADER_SIZE:
        raise ValueError("Header too large")
    header_end = 8 + header_size
    if header_end > len(data):
        raise ValueError("Invalid header length")
    header = json.loads(data[8:header_end].decode("utf-8"))
    if not isinstance(header, dict):
        raise ValueError("Header is not a JSON object")

    entries = []
    for name, entry in header.items():
        if name == "__metadata__":
            continue
        if not isinstance(entry, dict):
            raise ValueError(f"Invalid entry for tensor {name}")
        dtype = entry.get("dtype")
        shape = entry.get("shape")
        offsets = entry.get("data_offsets")
        if dtype not in _DTYPE_SIZES:
            raise ValueError(f"Unknown dtype for tensor {name}: {dtype}")
        if not isinstance(shape, list) or not all(_is_count(d) for d in shape):
            raise ValueError(f"Invalid shape for tensor {name}")
        if (
            not isinstance(offsets, list)
            or len(offsets) != 2
            or not all(_is_count(o) for o in offsets)
            or offsets[0] > offsets[1]
        ):
            raise ValueError(f"Invalid data offsets for tensor {name}")
        entries.append((name, dtype, tuple(shape), offsets[0], offsets[1]))

    body_len = len(data) - header_end
    expected_start = 0
    for name, dtype, shape, begin, end in sorted(entries, key=lambda e: (e[3], e[4])):
        if begin != expected_start:
            raise ValueError(f"Invalid offset for tensor {name}")
        if end - begin != math.prod(shape) * _DTYPE_SIZES[dtype]:
            raise ValueError(f"Tensor {name} has an invalid size")
        expected_start = end
    if expected_start != body_len:
        raise ValueError("Metadata does not cover the whole buffer")

    return [
        TensorInfo(name=name, dtype=dtype, shape=shape, size_bytes=end - begin)
        for name, dtype, shape, begin, end in entries
    ]


def load_safetensors(path: Path) -> list[TensorInfo]:
    """Describe every tensor stored in a .safetensors file."""
    data = _read_bytes(path)
    try:
        return _parse_safetensors(data)
    except ValueError as exc:
        raise ExplorerError(f"Failed to parse SafeTensors file: {path}: {exc}") from exc


def _f32(value: float) -> float:
    try:
        return _F32.unpack(_F32.pack(value))[0]
    except OverflowError:
        return math.inf


def _gguf_tensor_size(elements: int, element_size: float) -> int:
    size = _f32(_f32(float(elements)) * element_size)
    if math.isinf(size):
        return _USIZE_MAX
    return int(size)


def load_gguf(path: Path) -> tuple[list[TensorInfo], list[MetadataInfo]]:
    """Describe the tensors and metadata of a .gguf file."""
    data = _read_bytes(path)
    try:
        gguf = GGUFFile.read(data)
    except GGUFError as exc:
        raise ExplorerError(f"Failed to parse GGUF file: {path}: {exc}") from exc

    metadata = [
        MetadataInfo(name=key, value=str(value), value_type=value.type_name())
        for key, value in gguf.metadata.items()
    ]
    tensors = [
        TensorInfo(
            name=info.name,
            dtype=str(info.tensor_type),
            shape=info.dimensions,
            size_bytes=_gguf_tensor_size(
                math.prod(info.dimensions), info.tensor_type.element_size_bytes()
            ),
        )
        for info in gguf.tensors
    ]
    return tensors, metadata


class Explorer:
    """Merged view over the tensors of one or more model files."""

    def __init__(self, files: list[Path]) -> None:
        self.files = [Path(f) for f in files]
        self.tensors: list[TensorInfo] = []
        self.metadata: list[MetadataInfo] = []
        self.tree: list[TreeNode] = []
        self.flattened_tree: list[tuple[TreeNode, int]] = []
        self.selected_idx = 0
        self.scroll_offset = 0

    def title(self) -> str:
        """Header title: the file path for one file, a generic name otherwise."""
        if len(self.files) == 1:
            return str(self.files[0])
        return "SafeTensors Model"

    def load_all_files(self) -> None:
        """Read every file and rebuild the tree."""
        self.tensors = []
        self.metadata = []
        for path in self.files:
            suffix = path.suffix
            if suffix == ".safetensors":
                self.tensors.extend(load_safetensors(path))
            elif suffix == ".gguf":
                tensors, metadata = load_gguf(path)
                self.metadata.extend(metadata)
                self.tensors.extend(tensors)
            else:
                print(f"Warning: Unsupported file format: {path}", file=sys.stderr)

        self.tensors.sort(key=lambda t: natural_sort_key(t.name))
        if self.metadata:
            self.tree = build_tree_mixed(self.tensors, self.metadata)
        else:
            self.tree = build_tree(self.tensors)
        self.flattened_tree = flatten_tree(self.tree)

    def move_selection(self, delta: int) -> None:
        """Move the cursor by delta rows, clamped to the visible rows."""
        if not self.flattened_tree:
            return
        last = len(self.flattened_tree) - 1
        self.selected_idx = max(0, min(self.selected_idx + delta, last))

    def activate_selection(self) -> TensorInfo | MetadataInfo | None:
        """Toggle the selected group, or return the selected leaf's details."""
        if self.selected_idx >= len(self.flattened_tree):
            return None
        node, _ = self.flattened_tree[self.selected_idx]
        if isinstance(node, GroupNode):
            toggle_node_by_name(node.name, self.tree)
            self.flattened_tree = flatten_tree(self.tree)
            return None
        if isinstance(node, (TensorNode, MetadataNode)):
            return node.info
        return None

    def run(self) -> None:
        """Browse the files interactively until the user quits."""
        if not self.files:
            return
        term = Terminal()
        with term.fullscreen(), term.raw(), term.hidden_cursor():
            sys.stdout.write(term.clear)
            sys.stdout.flush()
            try:
                self._interactive_loop(term)
            finally:
                sys.stdout.write(term.clear)
                sys.stdout.flush()

    def _interactive_loop(self, term: Terminal) -> None:
        self.load_all_files()
        while True:
            self.scroll_offset = draw_screen(
                term,
                self.flattened_tree,
                self.title(),
                0,
                1,
                self.selected_idx,
                self.scroll_offset,
            )
            key = term.inkey()
            if key == "q" or key == "\x03":
                break
            if key.code == term.KEY_UP:
                self.move_selection(-1)
            elif key.code == term.KEY_DOWN:
                self.move_selection(1)
            elif key.code == term.KEY_ENTER or str(key) in ("\r", "\n", " "):
                detail = self.activate_selection()
                if isinstance(detail, TensorInfo):
                    draw_tensor_detail(term, detail)
                    term.inkey()
                elif isinstance(detail, MetadataInfo):
                    draw_metadata_detail(term, detail)
                    term.inkey()