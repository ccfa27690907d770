"""Slug generation for institution and club names"""
import re

_QUOTES = re.compile(r"['\"]")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """
    Lowercase, drop quotes, collapse everything else that is not [a-z0-9]
    into single dashes and trim dashes from both ends.

    >>> slugify("Partido State University!")
    'partido-state-university'
    >>> slugify("  A&B  ")
    'a-b'
    """
    slug = _QUOTES.sub("", (name or "").lower().strip())
    slug = _NON_ALNUM.sub("-", slug)
    return slug.strip("-")
