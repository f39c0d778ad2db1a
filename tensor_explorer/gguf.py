"""Reader for the header, metadata and tensor table of GGUF files."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass, field
from decimal import Decimal
from enum import IntEnum
from typing import Any

GGUF_MAGIC = 0x46554747


class GGUFError(ValueError):
    """Raised when GGUF data is malformed or truncated."""


class GGMLType(IntEnum):
    """Tensor element types, including quantised formats."""

    F32 = 0
    F16 = 1
    Q4_0 = 2
    Q4_1 = 3
    Q5_0 = 6
    Q5_1 = 7
    Q8_0 = 8
    Q8_1 = 9
    Q2_K = 10
    Q3_K = 11
    Q4_K = 12
    Q5_K = 13
    Q6_K = 14
    Q8_K = 15
    IQ2_XXS = 16
    IQ2_XS = 17
    IQ3_XXS = 18
    IQ1_S = 19
    IQ4_NL = 20
    IQ3_S = 21
    IQ2_S = 22
    IQ4_XS = 23
    I8 = 24
    I16 = 25
    I32 = 26
    I64 = 27
    F64 = 28
    IQ1_M = 29
    BF16 = 30

    def element_size_bytes(self) -> float:
        """Bytes per element; an average for block-quantised types."""
        return _ELEMENT_SIZES[self]

    def __str__(self) -> str:
        return self.name


_ELEMENT_SIZES: dict[GGMLType, float] = {
    GGMLType.F32: 4.0,
    GGMLType.I32: 4.0,
    GGMLType.F16: 2.0,
    GGMLType.BF16: 2.0,
    GGMLType.I16: 2.0,
    GGMLType.F64: 8.0,
    GGMLType.I64: 8.0,
    GGMLType.I8: 1.0,
    # Legacy quants, blocks of 32 weights
    GGMLType.Q4_0: 0.5625,
    GGMLType.Q4_1: 0.625,
    GGMLType.Q5_0: 0.6875,
    GGMLType.Q5_1: 0.75,
    GGMLType.Q8_0: 1.0625,
    GGMLType.Q8_1: 1.125,
    # K-quants, super-blocks of 256 weights
    GGMLType.Q2_K: 0.328125,
    GGMLType.Q3_K: 0.4296875,
    GGMLType.Q4_K: 0.5625,
    GGMLType.Q5_K: 0.6875,
    GGMLType.Q6_K: 0.8203125,
    GGMLType.Q8_K: 1.140625,
    # Importance quants, super-blocks of 256 weights
    GGMLType.IQ1_S: 0.1953125,
    GGMLType.IQ1_M: 0.21875,
    GGMLType.IQ2_XXS: 0.2578125,
    GGMLType.IQ2_XS: 0.2890625,
    GGMLType.IQ2_S: 0.3125,
    GGMLType.IQ3_XXS: 0.3828125,
    GGMLType.IQ3_S: 0.4296875,
    GGMLType.IQ4_NL: 0.53125,
    GGMLType.IQ4_XS: 0.53125,
}


class ValueType(IntEnum):
    """Type codes of metadata values."""

    UINT8 = 0
    INT8 = 1
    UINT16 = 2
    INT16 = 3
    UINT32 = 4
    INT32 = 5
    FLOAT32 = 6
    BOOL = 7
    STRING = 8
    ARRAY = 9
    UINT64 = 10
    INT64 = 11
    FLOAT64 = 12


_TYPE_NAMES: dict[ValueType, str] = {
    ValueType.UINT8: "u8",
    ValueType.INT8: "i8",
    ValueType.UINT16: "u16",
    ValueType.INT16: "i16",
    ValueType.UINT32: "u32",
    ValueType.INT32: "i32",
    ValueType.FLOAT32: "f32",
    ValueType.UINT64: "u64",
    ValueType.INT64: "i64",
    ValueType.FLOAT64: "f64",
    ValueType.BOOL: "bool",
    ValueType.STRING: "string",
    ValueType.ARRAY: "array",
}

_SCALAR_STRUCTS: dict[ValueType, struct.Struct] = {
    ValueType.UINT8: struct.Struct("<B"),
    ValueType.INT8: struct.Struct("<b"),
    ValueType.UINT16: struct.Struct("<H"),
    ValueType.INT16: struct.Struct("<h"),
    ValueType.UINT32: struct.Struct("<I"),
    ValueType.INT32: struct.Struct("<i"),
    ValueType.FLOAT32: struct.Struct("<f"),
    ValueType.UINT64: struct.Struct("<Q"),
    ValueType.INT64: struct.Struct("<q"),
    ValueType.FLOAT64: struct.Struct("<d"),
}

_F32 = struct.Struct("<f")


def _to_f32(value: float) -> float:
    return _F32.unpack(_F32.pack(value))[0]


def _shortest_f32_digits(value: float) -> str:
    for precision in range(1, 10):
        text = f"{value:.{precision}g}"
        if _to_f32(float(text)) == value:
            return text
    return repr(value)


def _format_float(value: float, single: bool) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    digits = _shortest_f32_digits(value) if single else repr(value)
    text = format(Decimal(digits), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


@dataclass(frozen=True)
class GGUFValue:
    """A typed metadata value; arrays hold a list of GGUFValue."""

    kind: ValueType
    value: Any

    def type_name(self) -> str:
        """Short name of the value's type, such as "u32" or "array"."""
        return _TYPE_NAMES[self.kind]

    def __str__(self) -> str:
        kind = self.kind
        if kind is ValueType.BOOL:
            return "true" if self.value else "false"
        if kind is ValueType.STRING:
            return f'"{self.value}"'
        if kind is ValueType.FLOAT32:
            return _format_float(self.value, single=True)
        if kind is ValueType.FLOAT64:
            return _format_float(self.value, single=False)
        if kind is ValueType.ARRAY:
            items = self.value
            if len(items) <= 5:
                return "[" + ", ".join(str(item) for item in items) + "]"
            return f"[{items[0]}, {items[1]}, ..., {items[-1]} ({len(items)})]"
        return str(self.value)


@dataclass(frozen=True)
class GGUFHeader:
    magic: int
    version: int
    tensor_count: int
    metadata_kv_count: int


@dataclass(frozen=True)
class GGUFTensorInfo:
    name: str
    dimensions: tuple[int, ...]
    tensor_type: GGMLType
    offset: int


class _Reader:
    """Sequential little-endian reader over a byte buffer."""

    _U32 = struct.Struct("<I")
    _U64 = struct.Struct("<Q")

    def __init__(self, data: bytes) -> None:
        self._data = memoryview(data)
        self._pos = 0

    def take(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise GGUFError("Unexpected end of GGUF data")
        chunk = bytes(self._data[self._pos:end])
        self._pos = end
        return chunk

    def unpack(self, fmt: struct.Struct) -> Any:
        return fmt.unpack(self.take(fmt.size))[0]

    def u32(self) -> int:
        return self.unpack(self._U32)

    def u64(self) -> int:
        return self.unpack(self._U64)

    def string(self) -> str:
        raw = self.take(self.u64())
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise GGUFError(f"Invalid UTF-8 string: {exc}") from exc

    def value(self, type_code: int) -> GGUFValue:
        try:
            kind = ValueType(type_code)
        except ValueError:
            raise GGUFError(f"Unknown value type: {type_code}") from None
        if kind is ValueType.BOOL:
            return GGUFValue(kind, self.unpack(_SCALAR_STRUCTS[ValueType.UINT8]) != 0)
        if kind is ValueType.STRING:
            return GGUFValue(kind, self.string())
        if kind is ValueType.ARRAY:
            item_type = self.u32()
            length = self.u64()
            return GGUFValue(kind, [self.value(item_type) for _ in range(length)])
        return GGUFValue(kind, self.unpack(_SCALAR_STRUCTS[kind]))


@dataclass
class GGUFFile:
    """Parsed header, metadata and tensor descriptions of a GGUF file."""

    header: GGUFHeader
    metadata: dict[str, GGUFValue] = field(default_factory=dict)
    tensors: list[GGUFTensorInfo] = field(default_factory=list)

    @classmethod
    def read(cls, data: bytes) -> GGUFFile:
        """Parse GGUF bytes; raises GGUFError on malformed input."""
        reader = _Reader(data)
        header = GGUFHeader(
            magic=reader.u32(),
            version=reader.u32(),
            tensor_count=reader.u64(),
            metadata_kv_count=reader.u64(),
        )
        if header.magic != GGUF_MAGIC:
            raise GGUFError("Invalid GGUF magic number")

        metadata: dict[str, GGUFValue] = {}
        for _ in range(header.metadata_kv_count):
            key = reader.string()
            metadata[key] = reader.value(reader.u32())

        tensors = [_read_tensor_info(reader) for _ in range(header.tensor_count)]
        return cls(header=header, metadata=metadata, tensors=tensors)


def _read_tensor_info(reader: _Reader) -> GGUFTensorInfo:
    name = reader.string()
    n_dimensions = reader.u32()
    dimensions = tuple(reader.u64() for _ in range(n_dimensions))
    type_code = reader.u32()
    try:
        tensor_type = GGMLType(type_code)
    except ValueError:
        raise GGUFError(f"Unknown tensor type: {type_code}") from None
    offset = reader.u64()
    return GGUFTensorInfo(name, dimensions, tensor_type, offset)