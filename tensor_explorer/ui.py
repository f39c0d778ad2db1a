"""Terminal rendering of the tensor tree and of detail pages."""

from __future__ import annotations

import sys
from typing import Any

from .tree import GroupNode, MetadataInfo, MetadataNode, TensorInfo, TensorNode, TreeNode
from .utils import format_shape, format_size

HEADER_HEIGHT = 3
FOOTER_HEIGHT = 2
DETAIL_VALUE_LINES = 20
METADATA_PREVIEW_LIMIT = 50
METADATA_PREVIEW_CUT = 47
RETURN_PROMPT = "Press any key to return..."


def _write_lines(lines: list[str]) -> None:
    sys.stdout.write("".join(f"{line}\r\n" for line in lines))


def _text_lines(text: str) -> list[str]:
    """Split on newlines, dropping a trailing empty line and any carriage returns."""
    parts = text.split("\n")
    if parts[-1] == "":
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


def compute_scroll_offset(selected_idx: int, scroll_offset: int, available_height: int) -> int:
    """Return the scroll offset that keeps the selected row visible."""
    if selected_idx >= scroll_offset + available_height:
        return max(0, selected_idx - max(available_height - 1, 0))
    if selected_idx < scroll_offset:
        return selected_idx
    return scroll_offset


def _preview(value: str) -> str:
    encoded = value.encode("utf-8")
    if len(encoded) > METADATA_PREVIEW_LIMIT:
        return encoded[:METADATA_PREVIEW_CUT].decode("utf-8", errors="ignore") + "..."
    return value


def format_node(node: TreeNode, depth: int) -> str:
    """Render one row of the tree, indented by depth."""
    indent = "  " * depth
    if isinstance(node, GroupNode):
        icon = "▼" if node.expanded else "▶"
        return (
            f"{indent}{icon} 📁 {node.name} "
            f"({node.tensor_count} tensors, {format_size(node.total_size)})"
        )
    if isinstance(node, TensorNode):
        info = node.info
        short_name = info.name.split(".")[-1]
        return (
            f"{indent}  📄 {short_name} "
            f"[{info.dtype}, {format_shape(info.shape)}, {format_size(info.size_bytes)}]"
        )
    if isinstance(node, MetadataNode):
        info = node.info
        return f"{indent}  🏷️  {info.name} [{info.value_type}]: {_preview(info.value)}"
    raise TypeError(f"Unknown tree node: {node!r}")


def tensor_detail_lines(tensor: TensorInfo) -> list[str]:
    """Lines of the tensor detail page."""
    return [
        "Tensor Details",
        "==============",
        f"Name: {tensor.name}",
        f"Data Type: {tensor.dtype}",
        f"Shape: {format_shape(tensor.shape)}",
        f"Size: {format_size(tensor.size_bytes)}",
        "",
        RETURN_PROMPT,
    ]


def metadata_detail_lines(metadata: MetadataInfo) -> list[str]:
    """Lines of the metadata detail page; at most 20 lines of the value are shown."""
    value_lines = _text_lines(metadata.value)[:DETAIL_VALUE_LINES]
    return [
        "Metadata Details",
        "================",
        f"Key: {metadata.name}",
        f"Type: {metadata.value_type}",
        "Value:",
        *(f"  {line}" for line in value_lines),
        "",
        RETURN_PROMPT,
    ]


def draw_screen(
    term: Any,
    tree: list[tuple[TreeNode, int]],
    current_file: str,
    file_idx: int,
    total_files: int,
    selected_idx: int,
    scroll_offset: int,
) -> int:
    """Draw the tree view and return the scroll offset that was used."""
    height = term.height
    available_height = max(0, height - (HEADER_HEIGHT + FOOTER_HEIGHT))

    sys.stdout.write(term.clear + term.home)
    _write_lines(
        [
            f"SafeTensors Explorer - {current_file} ({file_idx + 1}/{total_files})",
            "Use ↑/↓ to navigate, Enter/Space to expand/collapse, q to quit",
            "=" * 80,
        ]
    )

    new_offset = compute_scroll_offset(selected_idx, scroll_offset, available_height)
    visible = tree[new_offset:new_offset + available_height]
    for index, (node, depth) in enumerate(visible, start=new_offset):
        line = format_node(node, depth)
        if index == selected_idx:
            line = term.black_on_white(line)
        sys.stdout.write(f"{line}\r\n")

    sys.stdout.write(term.move_xy(0, max(height - 1, 0)))
    sys.stdout.write(
        f"Selected: {selected_idx + 1}/{len(tree)} | Scroll: {new_offset}\r\n"
    )
    sys.stdout.flush()
    return new_offset


def draw_tensor_detail(term: Any, tensor: TensorInfo) -> None:
    """Show the detail page of a tensor."""
    sys.stdout.write(term.clear + term.home)
    _write_lines(tensor_detail_lines(tensor))
    sys.stdout.flush()


def draw_metadata_detail(term: Any, metadata: MetadataInfo) -> None:
    """Show the detail page of a metadata entry."""
    sys.stdout.write(term.clear + term.home)
    _write_lines(metadata_detail_lines(metadata))
    sys.stdout.flush()