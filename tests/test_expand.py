from obclingo.expand import expand_body, format_value
from obclingo.models import Symbol


def test_expand_single_binding():
    assert expand_body("a.", [("x", 5)]) == "#const x = 5.\na.\n"


def test_expand_without_bindings():
    assert expand_body("a.", []) == "a.\n"


def test_expand_keeps_binding_order():
    body = "p(X) :- X = 1..n.\n#show p/1."
    out = expand_body(body, [("n", 3), ("name", "bob"), ("mode", Symbol("fast"))])
    lines = out.splitlines()
    assert lines[:3] == [
        "#const n = 3.",
        '#const name = "bob".',
        "#const mode = fast.",
    ]
    assert out.endswith(body + "\n")


def test_format_value():
    assert format_value(7) == "7"
    assert format_value(-2) == "-2"
    assert format_value(1.5) == "1.5"
    assert format_value(True) == "true"
    assert format_value(Symbol("abc")) == "abc"
    assert format_value('say "hi"') == '"say \\"hi\\""'
    assert format_value("a\\b") == '"a\\\\b"'
    assert format_value((1, "x")) == '(1,"x")'
    assert format_value([Symbol("a")]) == "(a,)"
