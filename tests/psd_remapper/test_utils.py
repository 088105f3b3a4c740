import pytest

from psd_remapper.utils import fold_name, normalize_name, slugify


@pytest.mark.parametrize(
    "name, expected",
    [
        ("!!SYMBOLS", "SYMBOLS"),
        ("SYMBOLS", "SYMBOLS"),
        ("  !! SYMBOLS  ", "SYMBOLS"),
        (" ! ! Big Win", "Big Win"),
        ("Big!Win", "Big!Win"),
        ("Win!!", "Win!!"),
        ("!!!", ""),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_name(name, expected):
    assert normalize_name(name) == expected


@pytest.mark.parametrize(
    "name", ["!!SYMBOLS", "  !!  A  ", "!!!", "", "plain", "!\t!x!"]
)
def test_normalize_name_idempotent(name):
    once = normalize_name(name)
    assert normalize_name(once) == once


def test_fold_name():
    assert fold_name("  Symbols ") == fold_name("SYMBOLS") == "symbols"
    assert fold_name("STRASSE") == fold_name("straße")


@pytest.mark.parametrize(
    "name, expected",
    [("SYMBOLS", "SYMBOLS"), ("Big Win", "Big_Win"), ("A  \t B", "A_B")],
)
def test_slugify(name, expected):
    assert slugify(name) == expected
