import pytest

from firmsite.utils.pagination import ELLIPSIS, clamp_page, page_numbers


@pytest.mark.parametrize("total", [0, 1])
def test_single_page_renders_nothing(total):
    assert page_numbers(1, total) == []


def test_short_lists_show_every_page():
    assert page_numbers(3, 7) == [1, 2, 3, 4, 5, 6, 7]


def test_start_of_long_list():
    assert page_numbers(1, 20) == [1, 2, ELLIPSIS, 20]
    assert page_numbers(3, 20) == [1, 2, 3, 4, ELLIPSIS, 20]


def test_middle_of_long_list():
    assert page_numbers(10, 20) == [1, ELLIPSIS, 9, 10, 11, ELLIPSIS, 20]


def test_end_of_long_list():
    assert page_numbers(20, 20) == [1, ELLIPSIS, 19, 20]
    assert page_numbers(18, 20) == [1, ELLIPSIS, 17, 18, 19, 20]


def test_out_of_range_current_is_clamped():
    assert page_numbers(99, 10) == [1, ELLIPSIS, 9, 10]


@pytest.mark.parametrize("value, expected", [("3", 3), (None, 1), ("abc", 1), ("0", 1), ("-2", 1)])
def test_clamp_page(value, expected):
    assert clamp_page(value) == expected
