import pytest

from tdstypes.uniqueidentifier import UniqueIdentifier

DB_UUID = bytes(
    [0x67, 0x45, 0x23, 0x01, 0xAB, 0x89, 0xEF, 0xCD,
     0x01, 0x23, 0x45, 0x67, 0x89, 0xAB, 0xCD, 0xEF]
)
UUID = UniqueIdentifier(
    bytes(
        [0x01, 0x23, 0x45, 0x67, 0x89, 0xAB, 0xCD, 0xEF,
         0x01, 0x23, 0x45, 0x67, 0x89, 0xAB, 0xCD, 0xEF]
    )
)


def test_scan_bytes_swaps_groups():
    assert UniqueIdentifier.scan(DB_UUID) == UUID


def test_scan_string():
    assert UniqueIdentifier.scan(str(UUID)) == UUID


def test_scan_lowercase_string():
    assert UniqueIdentifier.scan(str(UUID).lower()) == UUID


def test_value():
    assert UUID.value() == DB_UUID


def test_value_scan_round_trip():
    assert UniqueIdentifier.scan(UUID.value()) == UUID


def test_string():
    assert str(UUID) == "01234567-89AB-CDEF-0123-456789ABCDEF"


def test_marshal_text():
    expected = bytes(
        [48, 49, 50, 51, 52, 53, 54, 55, 45, 56, 57, 65, 66, 45, 67, 68, 69, 70,
         45, 48, 49, 50, 51, 45, 52, 53, 54, 55, 56, 57, 65, 66, 67, 68, 69, 70]
    )
    assert UUID.marshal_text() == expected


def test_default_is_all_zero():
    assert UniqueIdentifier().raw == bytes(16)


def test_scan_bytes_wrong_length():
    with pytest.raises(ValueError, match="length"):
        UniqueIdentifier.scan(b"\x01\x02")


def test_scan_string_wrong_length():
    with pytest.raises(ValueError, match="string length"):
        UniqueIdentifier.scan("0123")


def test_scan_string_not_hex():
    with pytest.raises(ValueError):
        UniqueIdentifier.scan("ZZ234567-89AB-CDEF-0123-456789ABCDEF")


def test_scan_unsupported_type():
    with pytest.raises(TypeError, match="int"):
        UniqueIdentifier.scan(42)


def test_constructor_rejects_wrong_length():
    with pytest.raises(ValueError):
        UniqueIdentifier(b"\x00" * 15)