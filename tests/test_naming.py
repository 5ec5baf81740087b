import pytest

from truss.naming import camel_case


@pytest.mark.parametrize(
    ("given", "expected"),
    [
        ("BounceEcho", "BounceEcho"),
        ("foo_bar_test", "FooBarTest"),
        ("_Foo_Bar", "XFoo_Bar"),
        ("foobar", "Foobar"),
        ("foo_bar", "FooBar"),
        ("a", "A"),
    ],
)
def test_camel_case(given, expected):
    assert camel_case(given) == expected


def test_empty_name():
    assert camel_case("") == ""


def test_idempotent_on_camel_case_output():
    once = camel_case("foo_bar_test")
    assert camel_case(once) == once