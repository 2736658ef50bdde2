from services.templates import (
    escape_variables,
    find_placeholders,
    render_placeholders,
    sample_variables,
)


def test_render_substitutes_known_variables():
    out = render_placeholders("Hi {{name}}, ref {{ref}}", {"name": "Ann", "ref": "X1"})
    assert out == "Hi Ann, ref X1"


def test_unknown_placeholder_left_literal():
    out = render_placeholders("Hi {{name}} {{zzz}}", {"name": "Ann"})
    assert out == "Hi Ann {{zzz}}"


def test_every_occurrence_replaced_and_numbers_stringified():
    out = render_placeholders("{{n}} + {{n}} = {{total}}", {"n": 2, "total": 4})
    assert out == "2 + 2 = 4"


def test_whitespace_inside_braces():
    assert render_placeholders("Dear {{ name }},", {"name": "Ann"}) == "Dear Ann,"


def test_none_renders_empty():
    assert render_placeholders("[{{note}}]", {"note": None}) == "[]"


def test_regex_special_characters_in_name_and_value():
    out = render_placeholders("{{a.b+}} / {{ab}}", {"a.b+": r"\1 $0", "ab": "plain"})
    assert out == r"\1 $0 / plain"


def test_values_are_not_html_escaped():
    out = render_placeholders("<p>{{html}}</p>", {"html": "<b>bold</b>"})
    assert out == "<p><b>bold</b></p>"


def test_escape_variables_sanitizes_for_preview():
    safe = escape_variables({"customerName": "<script>alert(1)</script>", "passengers": 3, "x": None})
    assert safe["customerName"] == "&lt;script&gt;alert(1)&lt;/script&gt;"
    assert safe["passengers"] == "3"
    assert safe["x"] == ""

    out = render_placeholders("<p>{{customerName}}</p>", safe)
    assert "<script>" not in out
    assert out.startswith("<p>")


def test_find_placeholders_in_order_without_duplicates():
    names = find_placeholders("{{b}} {{a}} {{ b }} {{c}}")
    assert names == ["b", "a", "c"]


def test_sample_variables_marks_unknown_names():
    values = sample_variables(["customerName", "somethingNew"])
    assert values["customerName"] == "Jane Doe"
    assert values["somethingNew"] == "[somethingNew]"
