import pytest

from propsort.identifiers import split_identifier


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("className", "class name"),
        ("onClick", "on click"),
        ("aria-labelledby", "aria labelledby"),
        ("data-test-id", "data test id"),
        ("XMLHttpRequest", "xml http request"),
        ("htmlFor", "html for"),
        ("xlink:href", "xlink href"),
        ("  _private_ ", "private"),
        ("snake_case_name", "snake case name"),
        ("tabIndex2", "tab index2"),
        ("key", "key"),
        ("data-*", "data *"),
        ("on*", "on*"),
    ],
)
def test_split_identifier(raw, expected):
    assert split_identifier(raw) == expected


def test_split_identifier_is_idempotent():
    for raw in ["className", "aria-label", "onMouseEnter", "ID"]:
        once = split_identifier(raw)
        assert split_identifier(once) == once
