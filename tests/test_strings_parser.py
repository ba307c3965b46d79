import pytest

from l10nbox_tools.iOS.strings_kit import parser
from l10nbox_tools.iOS.strings_kit.models import ParseError, StringsEntry, StringsTable, UnsupportedFormat


def test_parse_basic_keeps_order_and_comments():
    text = (
        "/* Title of the main screen */\n"
        '"title" = "Home";\n'
        "\n"
        "// greeting\n"
        '"hello" = "Hello %@";\n'
        '"bye" = "Bye";\n'
    )
    t = parser.parse_strings_text(text, locale="en")

    assert t.keys() == ["title", "hello", "bye"]
    assert t.value("hello") == "Hello %@"
    assert t.get("title").comment == "Title of the main screen"
    assert t.get("hello").comment == "greeting"
    assert t.get("bye").comment is None
    assert t.get("bye").source_line == 6


def test_empty_and_comment_only_input():
    assert len(parser.parse_strings_text("")) == 0
    assert len(parser.parse_strings_text("/* nothing here */\n// still nothing\n")) == 0


def test_last_value_wins_but_first_position_kept():
    t = parser.parse_strings_text('"a" = "1";\n"b" = "2";\n"a" = "3";\n')
    assert t.keys() == ["a", "b"]
    assert t.value("a") == "3"


def test_escapes():
    text = r'"k" = "line\nnext \"q\" tab\t \U00e9 \UD83D\UDE00 \\ end";'
    t = parser.parse_strings_text(text)
    assert t.value("k") == 'line\nnext "q" tab\t é 😀 \\ end'


def test_unquoted_tokens():
    t = parser.parse_strings_text("key = value;\nother.key = \"v\";")
    assert t.as_dict() == {"key": "value", "other.key": "v"}


def test_multiline_value_and_line_numbers():
    t = parser.parse_strings_text('"a" = "one\ntwo";\n"b" = "x";')
    assert t.value("a") == "one\ntwo"
    assert t.get("b").source_line == 3


def test_missing_semicolon_reports_line():
    with pytest.raises(ParseError) as ei:
        parser.parse_strings_text('"a" = "1"\n"b" = "2";\n')
    assert ei.value.line == 1
    assert "';'" in ei.value.detail
    assert '"a" = "1"' in ei.value.excerpt


def test_missing_equals_reports_line():
    with pytest.raises(ParseError) as ei:
        parser.parse_strings_text('"ok" = "1";\n"a" "1";\n')
    assert ei.value.line == 2
    assert "'='" in ei.value.detail


def test_unterminated_string_and_comment():
    with pytest.raises(ParseError) as ei:
        parser.parse_strings_text('"a" = "1";\n"b" = "never closed;\n')
    assert ei.value.line == 2
    assert "unterminated string" in ei.value.detail

    with pytest.raises(ParseError) as ei:
        parser.parse_strings_text('"a" = "1";\n/* open\n')
    assert ei.value.line == 2


def test_parse_error_carries_path(tmp_path):
    fp = tmp_path / "fr.lproj" / "Localizable.strings"
    fp.parent.mkdir()
    fp.write_text('"a" = "1"', encoding="utf-8")

    with pytest.raises(ParseError) as ei:
        parser.parse_strings_file(fp)
    assert ei.value.path == fp
    assert str(fp) in str(ei.value)


def test_parse_file_infers_locale(tmp_path):
    fp = tmp_path / "zh-Hans.lproj" / "Localizable.strings"
    fp.parent.mkdir()
    fp.write_text('"a" = "一";', encoding="utf-8")

    t = parser.parse_strings_file(fp)
    assert t.locale == "zh-Hans"
    assert t.path == fp


def test_parse_file_rejects_xml_plist(tmp_path):
    fp = tmp_path / "Localizable.strings"
    fp.write_text('<?xml version="1.0" encoding="UTF-8"?>\n<plist version="1.0"><dict/></plist>\n', encoding="utf-8")

    with pytest.raises(UnsupportedFormat):
        parser.parse_strings_file(fp)


def test_serialize_round_trip(tmp_path):
    table = StringsTable.from_entries(
        [
            StringsEntry(key="plain", value="Hello"),
            StringsEntry(key="quoted \"key\"", value='say "hi"\\now', comment="has */ inside"),
            StringsEntry(key="ctrl", value="a\tb\nc\x01d", comment="control chars"),
            StringsEntry(key="rtl", value="مرحبا %@ \u200f"),
        ],
        locale="ar",
    )
    fp = parser.write_strings_file(tmp_path / "ar.lproj" / "Localizable.strings", table)

    again = parser.parse_strings_file(fp)
    assert again == table
    assert again.keys() == table.keys()


def test_escape_strings_literal():
    assert parser.escape_strings_literal('a"b\\c\n') == 'a\\"b\\\\c\\n'
    assert parser.escape_strings_literal("\x01") == "\\U0001"


def test_lone_surrogates_are_escaped_on_write():
    assert parser.escape_strings_literal("\ud83d") == "\\Ud83d"
    assert parser.escape_strings_literal("\udc00x") == "\\Udc00x"
    # 成对的代理项已经合并成一个字符，原样写出
    assert parser.escape_strings_literal("😀") == "😀"
