import pytest

from tensor_explorer.utils import format_shape, format_size


@pytest.mark.parametrize("shape", [[], [7], [2, 3], [4096, 11008, 1]])
def test_format_shape_round_trip(shape):
    text = format_shape(shape)
    assert text.startswith("(") and text.endswith(")")
    inner = text[1:-1]
    parsed = [int(part) for part in inner.split(", ")] if inner else []
    assert parsed == shape


def test_format_shape_pinned_value():
    assert format_shape((2, 3)) == "(2, 3)"


def test_format_shape_accepts_tuple_and_generator():
    assert format_shape((5, 6)) == format_shape(x for x in [5, 6])


@pytest.mark.parametrize("n", [0, 1, 512, 1023])
def test_format_size_bytes_are_exact(n):
    assert format_size(n) == f"{n} B"


def test_format_size_kilobytes_pinned():
    assert format_size(1536) == "1.5 KB"


@pytest.mark.parametrize(
    "n, unit",
    [(1024, "KB"), (1024**2, "MB"), (1024**3, "GB")],
)
def test_format_size_exact_powers(n, unit):
    number, suffix = format_size(n).split(" ")
    assert suffix == unit
    assert float(number) == 1.0


def test_format_size_caps_at_gigabytes():
    number, suffix = format_size(1024**5).split(" ")
    assert suffix == "GB"
    assert float(number) == 1024.0


def test_format_size_one_decimal_above_bytes():
    number, _ = format_size(3 * 1024**2 + 12345).split(" ")
    assert len(number.split(".")[1]) == 1