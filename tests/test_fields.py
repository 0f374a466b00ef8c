import pytest

from wirepack.fields import read_primitive, read_vector, write_primitive, write_vector
from wirepack.fieldtypes import Misc, Primitive, make_type

U8 = make_type("u8", True)
U16BE = make_type("u16be", True)


def _pattern(size):
    return int("10" * 32, 2) & ((1 << size) - 1)


def test_read_big_endian_u16():
    assert read_primitive(bytes([0x12, 0x34]), 0, 0, U16BE) == 0x1234


@pytest.mark.parametrize("shift", range(8))
@pytest.mark.parametrize("size", [1, 3, 8, 9, 13, 16, 21, 32, 33, 64])
def test_big_endian_round_trip(shift, size):
    ty = make_type(f"u{size}be", True)
    buf = bytearray(10)
    value = _pattern(size)
    write_primitive(buf, 1, shift, ty, value)
    assert read_primitive(buf, 1, shift, ty) == value


@pytest.mark.parametrize("shift", range(8))
@pytest.mark.parametrize("size", [1, 5, 12, 20, 40])
def test_write_touches_only_field_bits(shift, size):
    ty = make_type(f"u{size}be", True)
    buf = bytearray(b"\x00" * 8)
    write_primitive(buf, 0, shift, ty, (1 << size) - 1)
    assert sum(bin(b).count("1") for b in buf) == size

    full = bytearray(b"\xff" * 8)
    write_primitive(full, 0, shift, ty, 0)
    assert sum(bin(b).count("1") for b in full) == 64 - size
    write_primitive(full, 0, shift, ty, (1 << size) - 1)
    assert full == bytearray(b"\xff" * 8)


@pytest.mark.parametrize("size", [16, 32, 64])
def test_little_endian_layout(size):
    ty = make_type(f"u{size}le", True)
    value = _pattern(size) | 1
    buf = bytearray(size // 8)
    write_primitive(buf, 0, 0, ty, value)
    assert bytes(buf) == value.to_bytes(size // 8, "little")
    assert read_primitive(buf, 0, 0, ty) == value


def test_host_endian_round_trip():
    ty = make_type("u32he", True)
    buf = bytearray(4)
    write_primitive(buf, 0, 0, ty, 0xDEADBEEF)
    assert read_primitive(buf, 0, 0, ty) == 0xDEADBEEF


def test_unaligned_fields_round_trip():
    fields = [
        (0, 0, make_type("u2", True), 0b10),
        (0, 2, make_type("u4", True), 0b1010),
        (0, 6, make_type("u6", True), 0b101010),
        (1, 4, make_type("u20be", True), 0b10101010101010101010),
    ]
    buf = bytearray(4)
    for offset, shift, ty, value in fields:
        write_primitive(buf, offset, shift, ty, value)
    for offset, shift, ty, value in fields:
        assert read_primitive(buf, offset, shift, ty) == value


def test_out_of_range_value_rejected():
    with pytest.raises(ValueError):
        write_primitive(bytearray(2), 0, 0, U16BE, 1 << 16)
    with pytest.raises(ValueError):
        write_primitive(bytearray(2), 0, 0, U16BE, -1)


def test_out_of_bounds_access():
    with pytest.raises(IndexError):
        read_primitive(bytes(1), 0, 0, U16BE)
    with pytest.raises(IndexError):
        write_primitive(bytearray(2), 1, 0, U16BE, 1)


def test_non_primitive_type_rejected():
    with pytest.raises(TypeError):
        read_primitive(bytes(4), 0, 0, Misc("Toto"))


def test_read_u8_vector():
    data = [1, 1, 1, 1, 2, 3, 4, 5, 6]
    assert read_vector(data, 4, 3, U8) == [2, 3, 4]


def test_read_vector_clamped_to_buffer():
    data = bytes([1, 1, 1, 1, 2, 3, 4, 5, 6])
    assert read_vector(data, 4, 100, U8) == list(data[4:])
    assert read_vector(data, len(data), 5, U8) == []


def test_read_vector_start_past_end():
    with pytest.raises(IndexError):
        read_vector(bytes(3), 4, 1, U8)


def test_write_u16_vector():
    packet = bytearray(7)
    packet[0] = 6
    write_vector(packet, 1, U16BE, [0x0001, 0x1223, 0x3FF4], limit=6)
    assert bytes(packet) == bytes([0x06, 0x00, 0x01, 0x12, 0x23, 0x3F, 0xF4])
    assert read_vector(packet, 1, 6, U16BE) == [0x0001, 0x1223, 0x3FF4]


def test_write_u8_vector_round_trip():
    buf = bytearray(6)
    write_vector(buf, 2, U8, [7, 8, 9], limit=3)
    assert read_vector(buf, 2, 3, U8) == [7, 8, 9]
    assert buf[:2] == bytearray(2)
    assert len(buf) == 6


def test_write_vector_limit():
    with pytest.raises(ValueError):
        write_vector(bytearray(8), 0, U8, [1, 2, 3], limit=2)


def test_write_vector_out_of_bounds_keeps_buffer_size():
    buf = bytearray(3)
    with pytest.raises(IndexError):
        write_vector(buf, 2, U8, [1, 2])
    assert buf == bytearray(3)


def test_write_vector_bad_element():
    with pytest.raises(ValueError):
        write_vector(bytearray(4), 0, U8, [256])
    with pytest.raises(ValueError):
        write_vector(bytearray(4), 0, U16BE, [1 << 16])


def test_u32_vector_round_trip():
    ty = Primitive("u32be", 32, U16BE.endianness)
    buf = bytearray(12)
    values = [0, 0xFFFFFFFF, 0x01020304]
    write_vector(buf, 0, ty, values)
    assert read_vector(buf, 0, 12, ty) == values
    assert read_vector(buf, 0, 11, ty) == values[:2]