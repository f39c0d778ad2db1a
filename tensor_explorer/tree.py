"""Hierarchical grouping of tensors by dotted name, with natural ordering."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Union

METADATA_GROUP_NAME = "🔧 Metadata"
_ROOT = "_root"
_U32_MAX = 2**32 - 1
_RUNS = re.compile(r"[0-9]+|[^0-9]+")


@dataclass(frozen=True)
class TensorInfo:
    name: str
    dtype: str
    shape: tuple[int, ...]
    size_bytes: int


@dataclass(frozen=True)
class MetadataInfo:
    name: str
    value: str
    value_type: str


@dataclass
class GroupNode:
    """A named group of tensors that can be expanded or collapsed."""

    name: str
    children: list[TreeNode] = field(default_factory=list)
    expanded: bool = False
    tensor_count: int = 0
    total_size: int = 0


@dataclass(frozen=True)
class TensorNode:
    info: TensorInfo

    @property
    def name(self) -> str:
        return self.info.name


@dataclass(frozen=True)
class MetadataNode:
    info: MetadataInfo

    @property
    def name(self) -> str:
        return self.info.name


TreeNode = Union[GroupNode, TensorNode, MetadataNode]


def natural_sort_key(name: str) -> tuple[tuple[int, str | int], ...]:
    """Split a name into text and number runs so that "a2" sorts before "a10".

    Text runs sort before number runs; digit runs that exceed 32 bits are
    treated as text.
    """
    key = []
    for run in _RUNS.findall(name):
        if run[0].isascii() and run[0].isdigit():
            number = int(run)
            key.append((1, number) if number <= _U32_MAX else (0, run))
        else:
            key.append((0, run))
    return tuple(key)


def _node_key(node: TreeNode) -> tuple:
    return natural_sort_key(node.name)


def _tensor_key(tensor: TensorInfo) -> tuple:
    return natural_sort_key(tensor.name)


def build_tree_mixed(
    tensors: list[TensorInfo], metadata: list[MetadataInfo]
) -> list[TreeNode]:
    """Build the tensor tree, preceded by a collapsed metadata group if any."""
    tree: list[TreeNode] = []
    if metadata:
        children: list[TreeNode] = sorted(
            (MetadataNode(meta) for meta in metadata), key=_node_key
        )
        tree.append(GroupNode(METADATA_GROUP_NAME, children, False, 0, 0))
    tree.extend(build_tree(tensors))
    return tree


def build_tree(tensors: list[TensorInfo]) -> list[TreeNode]:
    """Group tensors by the first component of their dotted names."""
    root_map: dict[str, list[TensorInfo]] = {}
    for tensor in tensors:
        parts = tensor.name.split(".")
        key = parts[0] if len(parts) > 1 else _ROOT
        root_map.setdefault(key, []).append(tensor)

    tree: list[TreeNode] = []
    for prefix, members in root_map.items():
        if prefix == _ROOT:
            tree.extend(TensorNode(tensor) for tensor in members)
            continue
        members = sorted(members, key=_tensor_key)
        tree.append(
            GroupNode(
                name=prefix,
                children=_build_subtree(members, prefix),
                expanded=True,
                tensor_count=len(members),
                total_size=sum(t.size_bytes for t in members),
            )
        )
    tree.sort(key=_node_key)
    return tree


def _build_subtree(tensors: list[TensorInfo], prefix: str) -> list[TreeNode]:
    dotted = prefix + "."
    groups: dict[str, list[TensorInfo]] = {}
    result: list[TreeNode] = []

    for tensor in tensors:
        remaining = tensor.name.removeprefix(dotted)
        parts = remaining.split(".")
        if len(parts) == 1:
            result.append(TensorNode(tensor))
        else:
            groups.setdefault(parts[0], []).append(tensor)

    for group_name, members in groups.items():
        result.append(
            GroupNode(
                name=group_name,
                children=_build_subtree(members, f"{prefix}.{group_name}"),
                expanded=False,
                tensor_count=len(members),
                total_size=sum(t.size_bytes for t in members),
            )
        )

    result.sort(key=_node_key)
    return result


def flatten_tree(tree: list[TreeNode]) -> list[tuple[TreeNode, int]]:
    """List visible nodes with their depth, descending only into expanded groups."""
    flattened: list[tuple[TreeNode, int]] = []

    def visit(node: TreeNode, depth: int) -> None:
        flattened.append((node, depth))
        if isinstance(node, GroupNode) and node.expanded:
            for child in node.children:
                visit(child, depth + 1)

    for node in tree:
        visit(node, 0)
    return flattened


def toggle_node_by_name(target_name: str, nodes: list[TreeNode]) -> None:
    """Flip the expanded state of groups named target_name.

    Within each list of siblings the first matching group is toggled and the
    rest of that list is skipped; groups visited before it are searched too.
    """
    for node in nodes:
        if not isinstance(node, GroupNode):
            continue
        if node.name == target_name:
            node.expanded = not node.expanded
            return
        toggle_node_by_name(target_name, node.children)