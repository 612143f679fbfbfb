"""Tests for compiling list parameters into a Mongo query."""
import re

import pytest
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING

from app.core.exceptions import ValidationError
from app.services.identifier_validator import IdentifierValidator
from app.services.query_builder import NoteFilters, QueryBuilder


@pytest.fixture
def builder(db) -> QueryBuilder:
    return QueryBuilder(IdentifierValidator(db))


def test__build__defaults_to_newest_first_with_cap(builder) -> None:
    """Test that empty filters match everything, newest first, capped at 100."""
    q = builder.build(NoteFilters())

    assert q.filter == {}
    assert q.sort == [("createdAt", DESCENDING), ("_id", DESCENDING)]
    assert q.limit == 100


def test__build__sort_by_title_ascending(builder) -> None:
    """Test that sortBy/order map to the stored field with an _id tiebreak."""
    q = builder.build(NoteFilters(sort_by="title", order="asc"))

    assert q.sort == [("title", ASCENDING), ("_id", ASCENDING)]


def test__build__category_and_tag_filters_use_in(builder, tag_repo, category_repo) -> None:
    """Test that reference filters become $in clauses on both fields."""
    c1 = category_repo.create("personal")
    c2 = category_repo.create("work")
    t1 = tag_repo.create("urgent")

    q = builder.build(NoteFilters(category_ids=[c1["id"], c2["id"]], tag_ids=[t1["id"]]))

    assert q.filter["categories"] == {"$in": [ObjectId(c1["id"]), ObjectId(c2["id"])]}
    assert q.filter["tags"] == {"$in": [ObjectId(t1["id"])]}


def test__build__unknown_category_filter_fails(builder) -> None:
    """Test that filtering by a category that does not exist is an error."""
    with pytest.raises(ValidationError):
        builder.build(NoteFilters(category_ids=[str(ObjectId())]))


def test__build__unknown_tag_filter_fails(builder) -> None:
    """Test that filtering by a tag that does not exist is an error."""
    with pytest.raises(ValidationError):
        builder.build(NoteFilters(tag_ids=["bogus"]))


def test__build__search_is_escaped_case_insensitive_substring(builder) -> None:
    """Test that search text is matched literally on title or body."""
    q = builder.build(NoteFilters(search="a.b"))

    title_clause, body_clause = q.filter["$or"]
    regex = title_clause["title"]
    assert body_clause["body"] is regex
    assert regex.flags & re.IGNORECASE
    assert regex.search("xA.By")
    assert not regex.search("axb")


def test__build__empty_search_is_ignored(builder) -> None:
    """Test that an empty search does not add a clause."""
    assert "$or" not in builder.build(NoteFilters(search="")).filter


def test__build__whitespace_search_is_literal(builder) -> None:
    """Test that a search made of spaces still matches literally."""
    q = builder.build(NoteFilters(search="  "))

    regex = q.filter["$or"][0]["title"]
    assert regex.search("two  spaces")
    assert not regex.search("one space")


def test__build__blank_filter_ids_are_dropped(builder, tag_repo) -> None:
    """Test that empty strings in filter lists are ignored, not rejected."""
    tag = tag_repo.create("work")

    q = builder.build(NoteFilters(category_ids=[""], tag_ids=["", " ", tag["id"]]))

    assert "categories" not in q.filter
    assert q.filter["tags"] == {"$in": [ObjectId(tag["id"])]}


def test__build__custom_limit(db) -> None:
    """Test that the result cap can be configured."""
    q = QueryBuilder(IdentifierValidator(db), limit=5).build(NoteFilters())
    assert q.limit == 5
