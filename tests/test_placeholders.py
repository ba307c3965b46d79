import pytest

from l10nbox_tools.iOS.strings_kit.models import PlaceholderSignature, PlaceholderType as T
from l10nbox_tools.iOS.strings_kit.placeholders import extract_signature, find_placeholders


def sig(value):
    return extract_signature(value)


@pytest.mark.parametrize(
    "value,types",
    [
        ("Hello %@", (T.OBJECT,)),
        ("%d items", (T.INT,)),
        ("%ld / %lld / %i / %D", (T.INT, T.INT, T.INT, T.INT)),
        ("%lu %x %X %o", (T.UNSIGNED, T.UNSIGNED, T.UNSIGNED, T.UNSIGNED)),
        ("%.2f %e %g %A", (T.FLOAT, T.FLOAT, T.FLOAT, T.FLOAT)),
        ("%s %S", (T.STRING, T.STRING)),
        ("%c %C", (T.CHAR, T.CHAR)),
        ("%p", (T.POINTER,)),
        ("%-5d|%+d|%05.1f", (T.INT, T.INT, T.FLOAT)),
        ("100%% sure", ()),
        ("No placeholders", ()),
        ("", ()),
    ],
)
def test_conversions(value, types):
    s = sig(value)
    assert s.types == types
    assert not s.positional
    assert not s.ambiguous


def test_percent_percent_is_not_a_placeholder():
    items = find_placeholders("50%% off %d")
    assert [p.text for p in items] == ["%d"]
    assert items[0].offset == 9


def test_positional_signature():
    s = sig("%2$@ owes %1$d")
    assert s.positional
    assert s.types == (T.INT, T.OBJECT)


def test_positional_gap_is_none():
    s = sig("%1$@ and %3$d")
    assert s.types == (T.OBJECT, None, T.INT)
    assert s.render() == "[Object, <none>, Int]"


def test_mixed_positional_is_ambiguous():
    s = sig("%1$@ and %d")
    assert s.ambiguous
    assert not s.matches(s)
    assert s.render().endswith("(ambiguous)")


def test_conflicting_position_types_is_ambiguous():
    assert sig("%1$@ %1$d").ambiguous
    assert not sig("%1$@ %1$@").ambiguous


def test_non_positional_order_is_ignored():
    assert sig("%@ has %d").matches(sig("%d: %@"))
    assert not sig("%@ has %d").matches(sig("%@ has %@"))


def test_positional_reorder_matches():
    assert sig("%1$@ sent %2$d").matches(sig("%2$d reçus de %1$@"))
    assert not sig("%1$@ sent %2$d").matches(sig("%1$d sent %2$@"))


def test_positional_and_plain_compare_by_position():
    assert sig("%1$@ %2$d").matches(sig("%1$@ %2$d"))
    # 一边带位置：按位置逐一比较（不带位置的按出现顺序视为 1, 2, ...）
    assert sig("%@ %d").matches(sig("%1$@ %2$d"))
    assert not sig("%d %@").matches(sig("%1$@ %2$d"))


def test_count_mismatch():
    assert not sig("%d").matches(sig(""))
    assert not sig("").matches(sig("%@"))
    assert sig("").matches(sig("nothing"))
    assert PlaceholderSignature().is_empty


def test_rtl_and_bidi_text_is_scanned_raw():
    # 阿拉伯语 / 希伯来语里的占位符常被 bidi 控制字符包围
    s = sig("\u200fلديك %d رسائل من \u2068%@\u2069")
    assert s.types == (T.INT, T.OBJECT)
    assert sig("יש לך %1$d הודעות").types == (T.INT,)


def test_display_names():
    assert [t.display for t in (T.OBJECT, T.INT, T.UNSIGNED, T.FLOAT, T.STRING, T.CHAR, T.POINTER)] == [
        "Object", "Int", "UInt", "Float", "CString", "CChar", "Pointer",
    ]


def test_swapped_positions_resolve_to_same_signature():
    plain = sig("%@ and %@")
    ordered = sig("%1$@ and %2$@")
    assert plain.types == ordered.types == (T.OBJECT, T.OBJECT)
    assert not plain.positional and ordered.positional
    assert sig("%2$@ and %1$@") == ordered


def test_star_width_and_precision_take_an_int_argument():
    assert sig("%*d items").types == (T.INT, T.INT)
    assert sig("%.*f%%").types == (T.INT, T.FLOAT)
    assert sig("%*.*s").types == (T.INT, T.INT, T.STRING)
    assert not sig("%*d items").matches(sig("%d items"))
    assert sig("%1$*d").ambiguous
