"""Lineage operations on text documents (inline backend)."""

from __future__ import annotations

import asyncio

import pytest

from contenthub.core.errors import InvalidInputError, NotFoundError
from contenthub.services.lineages import document_lineage

from ..conftest import OTHER_PROJECT_ID, PROJECT_ID


def test_create_writes_no_version(mongo_db) -> None:
    """A new document starts with an empty history."""
    lineage = document_lineage()

    async def scenario():
        doc = await lineage.create(PROJECT_ID, "Runbook", "Hello", author="alice")
        return doc, await lineage.history(doc.item_id)

    doc, history = asyncio.run(scenario())

    assert doc.content.ref == "Hello"
    assert doc.created_by == "alice"
    assert history == []


def test_create_in_unknown_project_raises_not_found(mongo_db) -> None:
    """Items can only be created inside existing projects."""
    with pytest.raises(NotFoundError, match="Project not found"):
        asyncio.run(document_lineage().create("nope", "Doc", "text"))


def test_create_with_blank_name_is_invalid(mongo_db) -> None:
    """Whitespace-only titles are rejected."""
    with pytest.raises(InvalidInputError):
        asyncio.run(document_lineage().create(PROJECT_ID, "   ", "text"))


def test_unresolvable_author_is_recorded_as_none(mongo_db) -> None:
    """An author who is not a known user becomes the system author."""
    doc = asyncio.run(document_lineage().create(PROJECT_ID, "Doc", "text", author="ghost"))

    assert doc.created_by is None


def test_first_update_of_empty_document_skips_snapshot(mongo_db) -> None:
    """Empty initial content is not worth a version."""
    lineage = document_lineage()

    async def scenario():
        doc = await lineage.create(PROJECT_ID, "Doc", "", author="alice")
        updated = await lineage.update(doc.item_id, "Hello", author="alice")
        return updated, await lineage.history(doc.item_id)

    updated, history = asyncio.run(scenario())

    assert updated.content.ref == "Hello"
    assert history == []


def test_update_keeps_previous_content_as_version(mongo_db) -> None:
    """Each update snapshots the superseded content with the acting author."""
    lineage = document_lineage()

    async def scenario():
        doc = await lineage.create(PROJECT_ID, "Doc", "A", author="alice")
        await lineage.update(doc.item_id, "B", author="bob", change_note="typo fix")
        current = await lineage.update(doc.item_id, "C", author="alice")
        return current, await lineage.history(doc.item_id)

    current, history = asyncio.run(scenario())

    assert current.content.ref == "C"
    assert current.updated_by == "alice"
    assert [v.version_number for v in history] == [2, 1]
    assert [v.content.ref for v in history] == ["B", "A"]
    assert history[1].author == "bob"
    assert history[1].change_note == "typo fix"
    assert history[0].change_note == "Updated"


def test_update_can_rename(mongo_db) -> None:
    """A new title is applied together with the content change."""
    lineage = document_lineage()

    async def scenario():
        doc = await lineage.create(PROJECT_ID, "Draft", "A")
        return await lineage.update(doc.item_id, "B", name="Final")

    assert asyncio.run(scenario()).name == "Final"


def test_update_through_other_project_raises_not_found(mongo_db) -> None:
    """Project scoping applies to mutations as well as reads."""
    lineage = document_lineage()
    doc = asyncio.run(lineage.create(PROJECT_ID, "Doc", "A"))

    with pytest.raises(NotFoundError):
        asyncio.run(lineage.update(doc.item_id, "B", project_id=OTHER_PROJECT_ID))

    assert asyncio.run(lineage.get(doc.item_id)).content.ref == "A"


def test_restore_snapshots_current_and_brings_back_old_content(mongo_db) -> None:
    """Restoring v1 appends the pre-restore state as the next version."""
    lineage = document_lineage()

    async def scenario():
        doc = await lineage.create(PROJECT_ID, "Doc", "A", author="alice")
        await lineage.update(doc.item_id, "B", author="alice")
        restored = await lineage.restore(doc.item_id, 1, author="bob")
        return restored, await lineage.history(doc.item_id)

    restored, history = asyncio.run(scenario())

    assert restored.content.ref == "A"
    assert restored.updated_by == "bob"
    assert [v.version_number for v in history] == [2, 1]
    assert history[0].content.ref == "B"
    assert history[0].change_note == "Restored from version 1"
    assert history[0].author == "bob"
    assert history[1].content.ref == "A"


def test_restore_round_trip_never_loses_content(mongo_db) -> None:
    """Restore, update and restore again keep every state in history."""
    lineage = document_lineage()

    async def scenario():
        doc = await lineage.create(PROJECT_ID, "Doc", "A")
        await lineage.update(doc.item_id, "B")
        await lineage.restore(doc.item_id, 1)
        current = await lineage.restore(doc.item_id, 2)
        return current, await lineage.history(doc.item_id)

    current, history = asyncio.run(scenario())

    assert current.content.ref == "B"
    assert [v.version_number for v in history] == [3, 2, 1]
    assert [v.content.ref for v in history] == ["A", "B", "A"]


def test_restore_missing_version_changes_nothing(mongo_db) -> None:
    """A missing target is reported before any mutation."""
    lineage = document_lineage()
    doc = asyncio.run(lineage.create(PROJECT_ID, "Doc", "A"))
    asyncio.run(lineage.update(doc.item_id, "B"))

    with pytest.raises(NotFoundError, match="Version not found"):
        asyncio.run(lineage.restore(doc.item_id, 7))

    current = asyncio.run(lineage.get(doc.item_id))
    history = asyncio.run(lineage.history(doc.item_id))
    assert current.content.ref == "B"
    assert [v.version_number for v in history] == [1]


def test_get_version_and_read_content(mongo_db) -> None:
    """Historical content is readable by version number."""
    lineage = document_lineage()

    async def scenario():
        doc = await lineage.create(PROJECT_ID, "Doc", "A")
        await lineage.update(doc.item_id, "B")
        version = await lineage.get_version(doc.item_id, 1)
        _, _, old = await lineage.read_content(doc.item_id, 1)
        _, _, new = await lineage.read_content(doc.item_id)
        return version, old, new

    version, old, new = asyncio.run(scenario())

    assert version.content.ref == "A"
    assert (old, new) == ("A", "B")


def test_concurrent_updates_produce_gapless_numbers(mongo_db) -> None:
    """Parallel updates on one item number their versions 1..N exactly once."""
    lineage = document_lineage()
    doc = asyncio.run(lineage.create(PROJECT_ID, "Doc", "initial"))
    writers = 6

    async def scenario():
        await asyncio.gather(*(
            lineage.update(doc.item_id, f"edit-{n}") for n in range(writers)
        ))
        return await lineage.history(doc.item_id)

    history = asyncio.run(scenario())

    assert sorted(v.version_number for v in history) == list(range(1, writers + 1))
    # Every version holds distinct content: no update overwrote another unseen
    assert len({v.content.ref for v in history}) == writers


def test_list_by_project_requires_existing_project(mongo_db) -> None:
    """Listing an unknown project is NotFound, an empty project is []."""
    lineage = document_lineage()

    assert asyncio.run(lineage.list_by_project(OTHER_PROJECT_ID)) == []
    with pytest.raises(NotFoundError):
        asyncio.run(lineage.list_by_project("nope"))


def test_delete_cascades_and_leaves_other_items(mongo_db) -> None:
    """Deleting a document removes its history and nothing else."""
    lineage = document_lineage()

    async def scenario():
        doomed = await lineage.create(PROJECT_ID, "Doomed", "A")
        await lineage.update(doomed.item_id, "B")
        await lineage.update(doomed.item_id, "C")
        survivor = await lineage.create(PROJECT_ID, "Survivor", "X")
        await lineage.update(survivor.item_id, "Y")
        removed = await lineage.delete(doomed.item_id)
        return doomed, survivor, removed

    doomed, survivor, removed = asyncio.run(scenario())

    assert removed == 2
    with pytest.raises(NotFoundError):
        asyncio.run(lineage.get(doomed.item_id))
    with pytest.raises(NotFoundError):
        asyncio.run(lineage.history(doomed.item_id))
    assert asyncio.run(lineage.get(survivor.item_id)).content.ref == "Y"
    assert len(asyncio.run(lineage.history(survivor.item_id))) == 1
    assert asyncio.run(mongo_db["document_versions"].count_documents({"item_id": doomed.item_id})) == 0
