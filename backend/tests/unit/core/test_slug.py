import pytest

from app.utils.slug import slugify


@pytest.mark.parametrize("name, expected", [
    ("Partido State University", "partido-state-university"),
    ("Partido State University!", "partido-state-university"),
    ("  A&B  ", "a-b"),
    ("Saint Mary's College", "saint-marys-college"),
    ('The "Best" Club', "the-best-club"),
    ("Tech -- Guild", "tech-guild"),
    ("ÁBC Club", "bc-club"),
    ("", ""),
    ("!!!", ""),
])
def test_slugify(name, expected):
    assert slugify(name) == expected


def test_slugify_none():
    assert slugify(None) == ""


def test_slugify_is_idempotent():
    slug = slugify("Computer Science Society 2024")
    assert slugify(slug) == slug
