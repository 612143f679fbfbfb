"""Tests for the note repository: validated writes and filtered reads."""
import pytest
from bson import ObjectId

from app.core.exceptions import NotFoundError, ValidationError
from app.services.query_builder import NoteFilters


@pytest.fixture
def taxonomy(tag_repo, category_repo) -> dict:
    """A small set of tags and categories keyed by name."""
    return {
        "work": tag_repo.create("work"),
        "urgent": tag_repo.create("urgent"),
        "personal": category_repo.create("personal"),
        "finance": category_repo.create("finance"),
    }


def _ids(items: list[dict]) -> set[str]:
    return {i["id"] for i in items}


# =============================================================================
# create
# =============================================================================


def test__create__returns_resolved_references(note_repo, taxonomy) -> None:
    """Test that a created note comes back with {id, name} references."""
    note = note_repo.create({
        "title": "Plan",
        "categories": [taxonomy["personal"]["id"]],
        "tags": [taxonomy["work"]["id"]],
    })

    assert note["title"] == "Plan"
    assert note["body"] is None
    assert note["categories"] == [taxonomy["personal"]]
    assert note["tags"] == [taxonomy["work"]]
    assert note["createdAt"] is not None
    assert ObjectId(note["id"])


def test__create__missing_title_fails_without_writing(db, note_repo) -> None:
    """Test that a note without title is rejected before any write."""
    for payload in ({}, {"title": ""}, {"title": "   "}, {"title": None}):
        with pytest.raises(ValidationError) as exc:
            note_repo.create(payload)
        assert exc.value.message == "Title is required"

    assert db["notes"].count_documents({}) == 0


def test__create__unknown_reference_fails_without_writing(db, note_repo, taxonomy) -> None:
    """Test that any unknown tag or category id aborts the create."""
    with pytest.raises(ValidationError):
        note_repo.create({"title": "x", "tags": [taxonomy["work"]["id"], str(ObjectId())]})
    with pytest.raises(ValidationError):
        note_repo.create({"title": "x", "categories": [str(ObjectId())]})

    assert db["notes"].count_documents({}) == 0


def test__create__stores_references_as_object_ids_without_repeats(db, note_repo, taxonomy) -> None:
    """Test that reference lists are persisted as de-duplicated ObjectIds."""
    work = taxonomy["work"]["id"]
    note = note_repo.create({"title": "x", "tags": [work, work]})

    stored = db["notes"].find_one({"_id": ObjectId(note["id"])})
    assert stored["tags"] == [ObjectId(work)]
    assert stored["categories"] == []


def test__create__round_trip_through_list(note_repo, taxonomy) -> None:
    """Test that listing a created note returns the same reference sets."""
    cats = [taxonomy["personal"]["id"], taxonomy["finance"]["id"]]
    tags = [taxonomy["urgent"]["id"]]
    created = note_repo.create({"title": "Budget", "categories": cats, "tags": tags})

    listed = note_repo.list(NoteFilters())

    assert len(listed) == 1
    assert listed[0]["id"] == created["id"]
    assert _ids(listed[0]["categories"]) == set(cats)
    assert _ids(listed[0]["tags"]) == set(tags)


def test__create__created_at_is_utc_with_millisecond_precision(note_repo) -> None:
    """Test that createdAt is the same value on create and on read."""
    created = note_repo.create({"title": "stamp"})

    listed = note_repo.list(NoteFilters())

    assert created["createdAt"].tzinfo is not None
    assert created["createdAt"].microsecond % 1000 == 0
    assert listed[0]["createdAt"] == created["createdAt"]


# =============================================================================
# update
# =============================================================================


def test__update__replaces_fields_wholesale(note_repo, taxonomy) -> None:
    """Test that update replaces title, body and references, keeping createdAt."""
    note = note_repo.create({
        "title": "Old",
        "body": "old body",
        "categories": [taxonomy["personal"]["id"]],
        "tags": [taxonomy["work"]["id"], taxonomy["urgent"]["id"]],
    })

    updated = note_repo.update(note["id"], {
        "title": "New",
        "body": None,
        "categories": [taxonomy["finance"]["id"]],
        "tags": [],
    })

    assert updated["id"] == note["id"]
    assert updated["title"] == "New"
    assert updated["body"] is None
    assert updated["categories"] == [taxonomy["finance"]]
    assert updated["tags"] == []
    assert updated["createdAt"] == note_repo.get(note["id"])["createdAt"]


def test__update__invalid_reference_leaves_note_untouched(note_repo, taxonomy) -> None:
    """Test that a failed validation does not mutate the stored note."""
    note = note_repo.create({"title": "Keep", "tags": [taxonomy["work"]["id"]]})

    with pytest.raises(ValidationError):
        note_repo.update(note["id"], {"title": "Changed", "tags": [str(ObjectId())]})

    current = note_repo.get(note["id"])
    assert current["title"] == "Keep"
    assert current["tags"] == [taxonomy["work"]]


def test__update__missing_title_fails(note_repo) -> None:
    """Test that update applies the same title rule as create."""
    note = note_repo.create({"title": "Keep"})

    with pytest.raises(ValidationError):
        note_repo.update(note["id"], {"body": "only body"})


def test__update__unknown_note_not_found(note_repo) -> None:
    """Test that updating a missing or malformed id raises NotFoundError."""
    with pytest.raises(NotFoundError):
        note_repo.update(str(ObjectId()), {"title": "x"})
    with pytest.raises(NotFoundError):
        note_repo.update("123", {"title": "x"})


# =============================================================================
# delete
# =============================================================================


def test__delete__removes_only_the_note(db, note_repo, taxonomy) -> None:
    """Test that deleting a note leaves tags, categories and other notes alone."""
    tags = [taxonomy["work"]["id"]]
    doomed = note_repo.create({"title": "a", "tags": tags})
    kept = note_repo.create({"title": "b", "tags": tags})

    note_repo.delete(doomed["id"])

    assert [n["id"] for n in note_repo.list(NoteFilters())] == [kept["id"]]
    assert db["tags"].count_documents({}) == 2
    with pytest.raises(NotFoundError):
        note_repo.delete(doomed["id"])


def test__get__unknown_note_not_found(note_repo) -> None:
    """Test that reading a missing note raises NotFoundError."""
    with pytest.raises(NotFoundError):
        note_repo.get(str(ObjectId()))


def test__deleted_tag__leaves_dangling_reference_hidden(db, note_repo, tag_repo, taxonomy) -> None:
    """Test that deleting a tag does not cascade but hides it from the view."""
    note = note_repo.create({"title": "x", "tags": [taxonomy["work"]["id"], taxonomy["urgent"]["id"]]})

    tag_repo.delete(taxonomy["work"]["id"])

    stored = db["notes"].find_one({"_id": ObjectId(note["id"])})
    assert ObjectId(taxonomy["work"]["id"]) in stored["tags"]
    assert note_repo.get(note["id"])["tags"] == [taxonomy["urgent"]]


# =============================================================================
# list
# =============================================================================


def test__list__filters_by_category_and_tag_intersection(note_repo, taxonomy) -> None:
    """Test that category and tag filters are combined with AND."""
    personal = taxonomy["personal"]["id"]
    finance = taxonomy["finance"]["id"]
    work = taxonomy["work"]["id"]
    urgent = taxonomy["urgent"]["id"]
    both = note_repo.create({"title": "both", "categories": [personal], "tags": [work]})
    cat_only = note_repo.create({"title": "cat only", "categories": [personal]})
    tag_only = note_repo.create({"title": "tag only", "tags": [work]})
    wider = note_repo.create({"title": "wider", "categories": [personal, finance], "tags": [urgent, work]})
    other = note_repo.create({"title": "other", "categories": [finance], "tags": [urgent]})

    result = note_repo.list(NoteFilters(category_ids=[personal], tag_ids=[work]))

    assert {n["id"] for n in result} == {both["id"], wider["id"]}
    assert cat_only["id"] not in {n["id"] for n in result}
    assert tag_only["id"] not in {n["id"] for n in result}
    assert other["id"] not in {n["id"] for n in result}


def test__list__multiple_categories_match_any(note_repo, taxonomy) -> None:
    """Test that several ids for one field match notes carrying any of them."""
    personal = taxonomy["personal"]["id"]
    finance = taxonomy["finance"]["id"]
    a = note_repo.create({"title": "a", "categories": [personal]})
    b = note_repo.create({"title": "b", "categories": [finance]})
    note_repo.create({"title": "c"})

    result = note_repo.list(NoteFilters(category_ids=[personal, finance]))

    assert {n["id"] for n in result} == {a["id"], b["id"]}


def test__list__search_matches_title_or_body_case_insensitively(note_repo) -> None:
    """Test that search is a case-insensitive substring match."""
    title_hit = note_repo.create({"title": "Foobar"})
    body_hit = note_repo.create({"title": "Other", "body": "has foo inside"})
    note_repo.create({"title": "Nothing", "body": "here"})

    result = note_repo.list(NoteFilters(search="foo"))

    assert {n["id"] for n in result} == {title_hit["id"], body_hit["id"]}


def test__list__unknown_filter_id_fails(note_repo) -> None:
    """Test that listing with an unknown category id is a validation error."""
    with pytest.raises(ValidationError):
        note_repo.list(NoteFilters(category_ids=[str(ObjectId())]))


def test__list__sorts_by_title(note_repo) -> None:
    """Test ascending and descending title order."""
    for title in ["banana", "apple", "cherry"]:
        note_repo.create({"title": title})

    asc = note_repo.list(NoteFilters(sort_by="title", order="asc"))
    desc = note_repo.list(NoteFilters(sort_by="title", order="desc"))

    assert [n["title"] for n in asc] == ["apple", "banana", "cherry"]
    assert [n["title"] for n in desc] == ["cherry", "banana", "apple"]


def test__list__default_order_is_newest_first(note_repo) -> None:
    """Test that createdAt desc (with _id tiebreak) lists the latest note first."""
    ids = [note_repo.create({"title": f"n{i}"})["id"] for i in range(3)]

    result = note_repo.list(NoteFilters())

    assert [n["id"] for n in result] == list(reversed(ids))


def test__list__equal_titles_are_ordered_by_id(note_repo) -> None:
    """Test that ties are broken deterministically across calls."""
    ids = [note_repo.create({"title": "same"})["id"] for _ in range(3)]

    first = [n["id"] for n in note_repo.list(NoteFilters(sort_by="title", order="asc"))]
    second = [n["id"] for n in note_repo.list(NoteFilters(sort_by="title", order="asc"))]

    assert first == ids
    assert first == second


def test__list__is_capped_at_100(db, note_repo) -> None:
    """Test that at most 100 notes are returned."""
    db["notes"].insert_many([
        {"title": f"n{i}", "body": None, "categories": [], "tags": []} for i in range(105)
    ])

    assert len(note_repo.list(NoteFilters(sort_by="title"))) == 100
