"""Alias generation: the exact character rules posts and categories rely on."""
import pytest

from actunews.slug import slugify


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Hello World", "hello-world"),
        ("Breaking News: Big Event", "breaking-news-big-event"),
        ("  --Already-Slug--  ", "already-slug"),
        ("Économie & Société!!", "conomie-soci-t"),
        ("Café", "caf"),
        ("Politique", "politique"),
        ("UPPER-case---dashes", "upper-case---dashes"),
        ("Sciences & Tech", "sciences-tech"),
        ("2026: l'année", "2026-l-ann-e"),
        ("", ""),
        ("!!!", ""),
        ("---", ""),
    ],
)
def test_slugify(text, expected):
    assert slugify(text) == expected


@pytest.mark.parametrize(
    "text",
    [
        "Hello World",
        "Économie & Société!!",
        "  --Already-Slug--  ",
        "a--b",
        "Ünïcödé — everywhere…",
        "tabs\tand\nnewlines",
        "",
    ],
)
def test_slugify_is_idempotent(text):
    once = slugify(text)
    assert slugify(once) == once


def test_slugify_output_alphabet():
    alias = slugify("L'été 2026 : « Grève » à la SNCF, 50 % des TGV annulés !")
    assert alias == alias.lower()
    assert not alias.startswith("-") and not alias.endswith("-")
    assert set(alias) <= set("abcdefghijklmnopqrstuvwxyz0123456789-")
