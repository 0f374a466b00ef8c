from functools import reduce

import pytest

from wirepack.ops import (
    GetOperation,
    get_mask,
    get_shiftl,
    get_shiftr,
    operations,
    radix16,
)

Op = GetOperation


@pytest.mark.parametrize(
    "op, expected",
    [
        (Op(0b00001111, 2, 0), "({} & 0xf) << 2"),
        (Op(0b00001111, 2, 2), "({} & 0xf)"),
        (Op(0b00001111, 0, 2), "({} & 0xf) >> 2"),
        (Op(0b11111111, 0, 2), "{} >> 2"),
        (Op(0b11111111, 3, 1), "{} << 2"),
    ],
)
def test_display_get_operation(op, expected):
    assert str(op) == expected


def test_radix16():
    assert radix16(0xAB) == "ab"
    assert radix16(0x1C) == "1c"
    assert radix16(0x1F0000000) == "1f0000000"


def test_radix16_zero_is_empty():
    assert radix16(0) == ""


@pytest.mark.parametrize(
    "args, expected",
    [
        ((0, 1), (1, 0b10000000)),
        ((0, 2), (2, 0b11000000)),
        ((0, 3), (3, 0b11100000)),
        ((0, 4), (4, 0b11110000)),
        ((0, 5), (5, 0b11111000)),
        ((0, 6), (6, 0b11111100)),
        ((0, 7), (7, 0b11111110)),
        ((0, 8), (8, 0b11111111)),
        ((0, 9), (8, 0b11111111)),
        ((0, 100), (8, 0b11111111)),
        ((1, 1), (1, 0b01000000)),
        ((1, 2), (2, 0b01100000)),
        ((1, 3), (3, 0b01110000)),
        ((1, 4), (4, 0b01111000)),
        ((1, 5), (5, 0b01111100)),
        ((1, 6), (6, 0b01111110)),
        ((1, 7), (7, 0b01111111)),
        ((1, 8), (7, 0b01111111)),
        ((1, 9), (7, 0b01111111)),
        ((1, 100), (7, 0b01111111)),
        ((5, 1), (1, 0b00000100)),
        ((5, 2), (2, 0b00000110)),
        ((5, 3), (3, 0b00000111)),
        ((5, 4), (3, 0b00000111)),
        ((5, 5), (3, 0b00000111)),
        ((5, 6), (3, 0b00000111)),
        ((5, 7), (3, 0b00000111)),
        ((5, 8), (3, 0b00000111)),
        ((5, 100), (3, 0b00000111)),
    ],
)
def test_get_mask(args, expected):
    assert get_mask(*args) == expected


def test_get_mask_rejects_large_offset():
    with pytest.raises(ValueError):
        get_mask(8, 1)


@pytest.mark.parametrize(
    "args, expected",
    [
        ((0, 8, 0, 1), 0),
        ((0, 9, 0, 2), 1),
        ((0, 9, 1, 2), 0),
        ((0, 10, 0, 2), 2),
        ((0, 10, 1, 2), 0),
        ((0, 11, 0, 2), 3),
        ((0, 11, 1, 2), 0),
        ((1, 7, 0, 1), 0),
        ((1, 8, 0, 2), 1),
        ((1, 9, 0, 2), 2),
        ((1, 9, 1, 2), 0),
        ((1, 10, 0, 2), 3),
        ((1, 10, 1, 2), 0),
        ((1, 11, 0, 2), 4),
        ((1, 11, 1, 2), 0),
        ((0, 35, 0, 5), 27),
        ((0, 35, 1, 5), 19),
        ((0, 35, 2, 5), 11),
        ((0, 35, 3, 5), 3),
        ((0, 35, 4, 5), 0),
    ],
)
def test_get_shiftl(args, expected):
    assert get_shiftl(*args) == expected


@pytest.mark.parametrize(
    "args, expected",
    [
        ((0, 1, 0, 1), 7),
        ((0, 2, 0, 1), 6),
        ((0, 3, 0, 1), 5),
        ((0, 4, 0, 1), 4),
        ((0, 5, 0, 1), 3),
        ((0, 6, 0, 1), 2),
        ((0, 7, 0, 1), 1),
        ((0, 8, 0, 1), 0),
        ((0, 9, 0, 2), 0),
        ((0, 9, 1, 2), 7),
        ((1, 7, 0, 1), 0),
        ((1, 8, 0, 2), 0),
        ((1, 8, 1, 2), 7),
        ((1, 9, 0, 2), 0),
        ((1, 9, 1, 2), 6),
        ((1, 10, 0, 2), 0),
        ((1, 10, 1, 2), 5),
        ((1, 11, 0, 2), 0),
        ((1, 11, 1, 2), 4),
        ((0, 35, 0, 5), 0),
        ((0, 35, 1, 5), 0),
        ((0, 35, 2, 5), 0),
        ((0, 35, 3, 5), 0),
        ((0, 35, 4, 5), 5),
    ],
)
def test_get_shiftr(args, expected):
    assert get_shiftr(*args) == expected


@pytest.mark.parametrize(
    "args, expected",
    [
        ((0, 1), [Op(0b10000000, 0, 7)]),
        ((0, 2), [Op(0b11000000, 0, 6)]),
        ((0, 3), [Op(0b11100000, 0, 5)]),
        ((0, 4), [Op(0b11110000, 0, 4)]),
        ((0, 5), [Op(0b11111000, 0, 3)]),
        ((0, 6), [Op(0b11111100, 0, 2)]),
        ((0, 7), [Op(0b11111110, 0, 1)]),
        ((0, 8), [Op(0b11111111, 0, 0)]),
        ((0, 9), [Op(0b11111111, 1, 0), Op(0b10000000, 0, 7)]),
        ((0, 10), [Op(0b11111111, 2, 0), Op(0b11000000, 0, 6)]),
        ((1, 1), [Op(0b01000000, 0, 6)]),
        ((1, 2), [Op(0b01100000, 0, 5)]),
        ((1, 3), [Op(0b01110000, 0, 4)]),
        ((1, 4), [Op(0b01111000, 0, 3)]),
        ((1, 5), [Op(0b01111100, 0, 2)]),
        ((1, 6), [Op(0b01111110, 0, 1)]),
        ((1, 7), [Op(0b01111111, 0, 0)]),
        ((1, 8), [Op(0b01111111, 1, 0), Op(0b10000000, 0, 7)]),
        ((1, 9), [Op(0b01111111, 2, 0), Op(0b11000000, 0, 6)]),
        (
            (3, 33),
            [
                Op(0b00011111, 28, 0),
                Op(0b11111111, 20, 0),
                Op(0b11111111, 12, 0),
                Op(0b11111111, 4, 0),
                Op(0b11110000, 0, 4),
            ],
        ),
        ((6, 6), [Op(3, 4, 0), Op(240, 0, 4)]),
    ],
)
def test_operations(args, expected):
    assert operations(*args) == expected


@pytest.mark.parametrize("args", [(8, 1), (3, 0), (3, 65)])
def test_operations_invalid(args):
    with pytest.raises(ValueError):
        operations(*args)


def _read(data, ops):
    return reduce(lambda acc, pair: acc | pair[1].extract(pair[0]), zip(data, ops), 0)


def test_extract_reads_big_endian_word():
    assert _read([0x12, 0x34], operations(0, 16)) == 0x1234


def test_extract_reads_straddling_field():
    assert _read([0b00000011, 0b11110000], operations(6, 6)) == 0b111111


def test_extract_ignores_bits_outside_field():
    assert _read([0b10111111], operations(1, 3)) == 0b011