from tensor_explorer.tree import (
    GroupNode,
    MetadataInfo,
    MetadataNode,
    TensorInfo,
    TensorNode,
)
from tensor_explorer.ui import (
    compute_scroll_offset,
    draw_metadata_detail,
    draw_screen,
    draw_tensor_detail,
    format_node,
    metadata_detail_lines,
    tensor_detail_lines,
)
from tensor_explorer.utils import format_shape, format_size


class FakeTerm:
    def __init__(self, height):
        self.height = height
        self.clear = "<clear>"
        self.home = "<home>"

    def move_xy(self, x, y):
        return f"<move {x},{y}>"

    def black_on_white(self, text):
        return f"<sel>{text}</sel>"


def _tensor(name, size=24):
    return TensorInfo(name, "F32", (2, 3), size)


def test_scroll_offset_unchanged_when_visible():
    assert compute_scroll_offset(3, 2, 5) == 2


def test_scroll_offset_follows_selection_down():
    offset = compute_scroll_offset(12, 0, 5)
    assert offset <= 12 < offset + 5
    assert offset == 12 - 4


def test_scroll_offset_follows_selection_up():
    assert compute_scroll_offset(1, 6, 5) == 1


def test_format_group_icons():
    expanded = GroupNode("model", [], True, 2, 3)
    collapsed = GroupNode("model", [], False, 2, 3)
    assert format_node(expanded, 0).startswith("▼ 📁 model (2 tensors, ")
    assert format_node(collapsed, 1).startswith("  ▶ 📁 model")


def test_format_tensor_uses_short_name():
    line = format_node(TensorNode(_tensor("model.layers.0.weight")), 2)
    assert line.startswith("    ")
    expected_tail = f"📄 weight [F32, {format_shape((2, 3))}, {format_size(24)}]"
    assert line.endswith(expected_tail)


def test_format_metadata_truncates_long_values():
    long_value = "v" * 60
    line = format_node(MetadataNode(MetadataInfo("k", long_value, "string")), 0)
    assert line.endswith(": " + "v" * 47 + "...")
    short = format_node(MetadataNode(MetadataInfo("k", "short", "string")), 0)
    assert short.endswith("k [string]: short")


def test_tensor_detail_lines():
    lines = tensor_detail_lines(_tensor("a.b"))
    assert lines[0] == "Tensor Details"
    assert "Name: a.b" in lines
    assert "Data Type: F32" in lines
    assert lines[-1] == "Press any key to return..."


def test_metadata_detail_lines_split_values():
    lines = metadata_detail_lines(MetadataInfo("key", "a\nb\r\nc\n", "string"))
    assert lines[:5] == ["Metadata Details", "================", "Key: key", "Type: string", "Value:"]
    assert lines[5:8] == ["  a", "  b", "  c"]
    assert lines[8:] == ["", "Press any key to return..."]


def test_metadata_detail_lines_limit():
    value = "\n".join(str(i) for i in range(30))
    lines = metadata_detail_lines(MetadataInfo("key", value, "string"))
    value_lines = lines[5:-2]
    assert len(value_lines) == 20
    assert value_lines[-1] == "  19"


def test_draw_screen_highlights_and_scrolls(capsys):
    tree = [(TensorNode(_tensor(f"t{i}")), 0) for i in range(20)]
    offset = draw_screen(FakeTerm(10), tree, "file.safetensors", 0, 1, 7, 0)
    out = capsys.readouterr().out
    assert offset == compute_scroll_offset(7, 0, 5)
    assert "SafeTensors Explorer - file.safetensors (1/1)" in out
    assert f"<sel>{format_node(tree[7][0], 0)}</sel>" in out
    assert out.count("📄") == 5
    assert f"Selected: 8/20 | Scroll: {offset}" in out
    assert "<move 0,9>" in out


def test_draw_detail_pages(capsys):
    draw_tensor_detail(FakeTerm(10), _tensor("x.y"))
    draw_metadata_detail(FakeTerm(10), MetadataInfo("key", "val", "u32"))
    out = capsys.readouterr().out
    assert "Name: x.y\r\n" in out
    assert "Type: u32\r\n" in out
    assert out.count("<clear><home>") == 2