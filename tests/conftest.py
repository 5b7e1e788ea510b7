"""Shared fixtures: a small person source with known duplicates."""
from __future__ import annotations

import pytest

from cleansing.linkage import CompositeSimilarity, FieldSimilarity


def person(id_, first, last, age):
    return {"id": id_, "first name": first, "last name": last, "age": age}


@pytest.fixture()
def persons():
    """Nine persons; ids 0-4 each have a duplicate among ids 5-8 except 3."""
    return [
        person(0, "albert", "perfect duplicate", 80),
        person(1, "berta", "typo", 70),
        person(2, "charles", "age inaccurate", 70),
        person(3, "dagmar", "unmatched", 75),
        person(4, "elma", "first nameDiffers", 60),
        person(5, "albert", "perfect duplicate", 80),
        person(6, "berta", "tpyo", 70),
        person(7, "charles", "age inaccurate", 69),
        person(8, "elmar", "first nameDiffers", 60),
    ]


@pytest.fixture()
def person_similarity():
    """Mean of first name edit similarity, last name token overlap and age."""
    return CompositeSimilarity([
        FieldSimilarity("levenshtein", "first name"),
        FieldSimilarity("jaccard", "last name"),
        FieldSimilarity("numeric_difference", "age", tolerance=10),
    ])
