import numpy as np
import pytest

from denoisers.conversions import as_int, to_uint8


def test_uint8_is_copied():
    img = np.array([[1, 2]], dtype=np.uint8)
    out = to_uint8(img)
    out[0, 0] = 9
    assert img[0, 0] == 1


def test_unit_float_is_rescaled():
    out = to_uint8(np.array([[0.0, 0.5, 1.0]]))
    np.testing.assert_array_equal(out, np.array([[0, 127, 255]], dtype=np.uint8))


def test_integer_mask_is_not_rescaled():
    out = to_uint8(np.array([[0, 1], [1, 0]], dtype=np.int64))
    np.testing.assert_array_equal(out, np.array([[0, 1], [1, 0]], dtype=np.uint8))


def test_out_of_range_values_are_clipped():
    out = to_uint8(np.array([[-5, 300]], dtype=np.int32))
    np.testing.assert_array_equal(out, np.array([[0, 255]], dtype=np.uint8))


def test_as_int():
    assert as_int("radius", 3) == 3
    assert as_int("radius", 3.0) == 3
    assert as_int("radius", np.int64(2)) == 2
    for bad in (2.5, "2", None, True):
        with pytest.raises(ValueError):
            as_int("radius", bad)
