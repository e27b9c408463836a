"""Tests for the revision store."""

import pytest

from revision_history.errors import HashExhaustedError, RevisionNotFoundError
from revision_history.models.pointer import PointerState
from revision_history.models.revision import EntityType, GetRevisionsOptions
from revision_history.store.revision_store import RevisionStore

P = EntityType.PRODUCT


async def _current_ids(store, entity_type, entity_id) -> list[str]:
    revisions = await store.get_revisions(entity_type, entity_id)
    return [r.id for r in revisions if r.is_current]


@pytest.mark.asyncio
async def test_create_revision(store, clock):
    revision = await store.create_revision(
        P, "p1", {"name": "Mug"}, user_id="alice", message="first"
    )
    assert revision.site_id == "site-1"
    assert revision.entity_type == P
    assert revision.entity_id == "p1"
    assert len(revision.revision_hash) == 8
    assert revision.parent_revision_id is None
    assert revision.data == {"name": "Mug"}
    assert revision.user_id == "alice"
    assert revision.message == "first"
    assert revision.created_at == int(clock.now)
    assert revision.is_current is False


@pytest.mark.asyncio
async def test_create_does_not_mark_current(store):
    await store.create_revision(P, "p1", {})
    assert await store.get_current_revision(P, "p1") is None


@pytest.mark.asyncio
async def test_hashes_unique_per_entity(store):
    revisions = [await store.create_revision(P, "p1", {"i": i}) for i in range(30)]
    hashes = [r.revision_hash for r in revisions]
    assert len(set(hashes)) == len(hashes)


@pytest.mark.asyncio
async def test_ids_unique(store):
    revisions = [await store.create_revision(P, "p1", {}) for _ in range(10)]
    assert len({r.id for r in revisions}) == 10


@pytest.mark.asyncio
async def test_hash_exhausted(db):
    store = RevisionStore(db, "site-1", max_hash_attempts=0)
    with pytest.raises(HashExhaustedError):
        await store.create_revision(P, "p1", {})
    assert await store.count_revisions(P, "p1") == 0


@pytest.mark.asyncio
async def test_get_revision_by_id(store):
    created = await store.create_revision(P, "p1", {"a": 1})
    loaded = await store.get_revision_by_id(created.id)
    assert loaded == created


@pytest.mark.asyncio
async def test_get_revision_by_id_missing(store):
    with pytest.raises(RevisionNotFoundError, match="not found"):
        await store.get_revision_by_id("nope")
    assert await store.find_revision_by_id("nope") is None


@pytest.mark.asyncio
async def test_site_scoping(db, store):
    created = await store.create_revision(P, "p1", {})
    other = RevisionStore(db, "site-2")
    assert await other.find_revision_by_id(created.id) is None
    assert await other.get_revisions(P, "p1") == []


@pytest.mark.asyncio
async def test_get_revision_by_hash(store):
    created = await store.create_revision(P, "p1", {"a": 1})
    found = await store.get_revision_by_hash(P, "p1", created.revision_hash.upper())
    assert found is not None
    assert found.id == created.id
    assert await store.get_revision_by_hash(P, "p2", created.revision_hash) is None


@pytest.mark.asyncio
async def test_get_revisions_newest_first(store, clock):
    ids = []
    for i in range(3):
        ids.append((await store.create_revision(P, "p1", {"i": i})).id)
        clock.advance()
    revisions = await store.get_revisions(P, "p1")
    assert [r.id for r in revisions] == list(reversed(ids))


@pytest.mark.asyncio
async def test_get_revisions_current_only(store):
    a = await store.create_revision(P, "p1", {})
    await store.create_revision(P, "p1", {})
    await store.set_current_revision(P, "p1", a.id)
    revisions = await store.get_revisions(P, "p1", GetRevisionsOptions(current_only=True))
    assert [r.id for r in revisions] == [a.id]


@pytest.mark.asyncio
async def test_get_revision_metadata(store):
    created = await store.create_revision(P, "p1", {"big": "payload"}, message="m")
    [meta] = await store.get_revision_metadata(P, "p1")
    assert meta.id == created.id
    assert meta.message == "m"
    assert not hasattr(meta, "data")


# -- Current pointer --


@pytest.mark.asyncio
async def test_set_current_revision(store):
    a = await store.create_revision(P, "p1", {})
    b = await store.create_revision(P, "p1", {}, parent_revision_id=a.id)

    await store.set_current_revision(P, "p1", a.id)
    assert await _current_ids(store, P, "p1") == [a.id]

    await store.set_current_revision(P, "p1", b.id)
    assert await _current_ids(store, P, "p1") == [b.id]
    current = await store.get_current_revision(P, "p1")
    assert current is not None
    assert current.id == b.id


@pytest.mark.asyncio
async def test_at_most_one_current_after_many_switches(store):
    revisions = [await store.create_revision(P, "p1", {"i": i}) for i in range(5)]
    for rev in revisions + list(reversed(revisions)):
        await store.set_current_revision(P, "p1", rev.id)
        assert len(await _current_ids(store, P, "p1")) == 1


@pytest.mark.asyncio
async def test_set_current_leaves_other_entities_alone(store):
    a = await store.create_revision(P, "p1", {})
    b = await store.create_revision(P, "p2", {})
    await store.set_current_revision(P, "p1", a.id)
    await store.set_current_revision(P, "p2", b.id)
    assert await _current_ids(store, P, "p1") == [a.id]


@pytest.mark.asyncio
async def test_set_current_rejects_foreign_revision(store):
    a = await store.create_revision(P, "p1", {})
    other = await store.create_revision(P, "p2", {})
    await store.set_current_revision(P, "p1", a.id)

    with pytest.raises(RevisionNotFoundError):
        await store.set_current_revision(P, "p1", other.id)
    with pytest.raises(RevisionNotFoundError):
        await store.set_current_revision(P, "p1", "missing")

    # Pointer untouched
    assert await _current_ids(store, P, "p1") == [a.id]


@pytest.mark.asyncio
async def test_check_pointer_states(store, db):
    assert (await store.check_current_pointer(P, "p1")).state == PointerState.UNVERSIONED

    a = await store.create_revision(P, "p1", {})
    status = await store.check_current_pointer(P, "p1")
    assert status.state == PointerState.MISSING
    assert status.revision_count == 1
    assert not status.is_healthy

    await store.set_current_revision(P, "p1", a.id)
    status = await store.check_current_pointer(P, "p1")
    assert status.state == PointerState.OK
    assert status.current_ids == [a.id]

    b = await store.create_revision(P, "p1", {})
    await db.execute("UPDATE revisions SET is_current = 1 WHERE id = ?", (b.id,))
    await db.commit()
    status = await store.check_current_pointer(P, "p1")
    assert status.state == PointerState.DUPLICATED
    assert set(status.current_ids) == {a.id, b.id}


@pytest.mark.asyncio
async def test_repair_missing_pointer_uses_newest_head(store, clock):
    a = await store.create_revision(P, "p1", {})
    clock.advance()
    b = await store.create_revision(P, "p1", {}, parent_revision_id=a.id)

    repaired = await store.repair_current_pointer(P, "p1")
    assert repaired is not None
    assert repaired.id == b.id
    assert repaired.is_current is True
    assert (await store.check_current_pointer(P, "p1")).state == PointerState.OK


@pytest.mark.asyncio
async def test_repair_missing_pointer_with_cyclic_parents(store, db, clock):
    a = await store.create_revision(P, "p1", {})
    clock.advance()
    b = await store.create_revision(P, "p1", {}, parent_revision_id=a.id)
    await db.execute("UPDATE revisions SET parent_revision_id = ? WHERE id = ?", (b.id, a.id))
    await db.commit()
    assert await store.get_head_revisions(P, "p1") == []

    repaired = await store.repair_current_pointer(P, "p1")
    assert repaired is not None
    assert repaired.id == b.id
    assert (await store.check_current_pointer(P, "p1")).state == PointerState.OK


@pytest.mark.asyncio
async def test_repair_duplicated_pointer_keeps_newest(store, db, clock):
    a = await store.create_revision(P, "p1", {})
    clock.advance()
    b = await store.create_revision(P, "p1", {})
    await db.execute("UPDATE revisions SET is_current = 1 WHERE id IN (?, ?)", (a.id, b.id))
    await db.commit()

    repaired = await store.repair_current_pointer(P, "p1")
    assert repaired is not None
    assert repaired.id == b.id
    assert await _current_ids(store, P, "p1") == [b.id]


@pytest.mark.asyncio
async def test_repair_healthy_and_unversioned(store):
    assert await store.repair_current_pointer(P, "p1") is None
    a = await store.create_revision(P, "p1", {})
    await store.set_current_revision(P, "p1", a.id)
    repaired = await store.repair_current_pointer(P, "p1")
    assert repaired is not None
    assert repaired.id == a.id


# -- Restore --


@pytest.mark.asyncio
async def test_restore_scenario(store, clock):
    a = await store.create_revision(P, "p1", {"name": "Original", "price": 10})
    clock.advance()
    b = await store.create_revision(
        P, "p1", {"name": "Changed", "price": 12}, parent_revision_id=a.id
    )
    await store.set_current_revision(P, "p1", b.id)
    clock.advance()

    c = await store.restore_revision(a.id, user_id="bob")

    assert c.parent_revision_id == b.id
    assert c.data == a.data
    assert "Restored from revision" in c.message
    assert a.revision_hash in c.message
    assert c.user_id == "bob"
    assert c.is_current is True

    current = await store.get_current_revision(P, "p1")
    assert current is not None
    assert current.id == c.id

    heads = await store.get_head_revisions(P, "p1")
    assert [h.id for h in heads] == [c.id]


@pytest.mark.asyncio
async def test_restore_is_additive(store, clock):
    a = await store.create_revision(P, "p1", {"v": 1})
    clock.advance()
    b = await store.create_revision(P, "p1", {"v": 2}, parent_revision_id=a.id)
    await store.set_current_revision(P, "p1", b.id)
    before = {r.id: r for r in await store.get_revisions(P, "p1")}

    await store.restore_revision(a.id)

    after = {r.id: r for r in await store.get_revisions(P, "p1")}
    assert len(after) == len(before) + 1
    for rev_id, rev in before.items():
        unchanged = after[rev_id]
        assert unchanged.data == rev.data
        assert unchanged.parent_revision_id == rev.parent_revision_id
        assert unchanged.revision_hash == rev.revision_hash


@pytest.mark.asyncio
async def test_restore_without_current_parents_on_source(store):
    a = await store.create_revision(P, "p1", {"v": 1})
    c = await store.restore_revision(a.id)
    assert c.parent_revision_id == a.id
    assert c.is_current is True


@pytest.mark.asyncio
async def test_restore_missing_revision(store):
    with pytest.raises(RevisionNotFoundError):
        await store.restore_revision("missing")
    assert await store.count_revisions(P, "p1") == 0


# -- Heads --


@pytest.mark.asyncio
async def test_heads_include_leaves_exclude_parents(store, clock):
    root = await store.create_revision(P, "p1", {})
    clock.advance()
    left = await store.create_revision(P, "p1", {}, parent_revision_id=root.id)
    clock.advance()
    right = await store.create_revision(P, "p1", {}, parent_revision_id=root.id)
    clock.advance()
    tip = await store.create_revision(P, "p1", {}, parent_revision_id=left.id)

    head_ids = [h.id for h in await store.get_head_revisions(P, "p1")]
    assert head_ids == [tip.id, right.id]
    assert root.id not in head_ids
    assert left.id not in head_ids


@pytest.mark.asyncio
async def test_heads_empty(store):
    assert await store.get_head_revisions(P, "p1") == []


# -- Tree --


@pytest.mark.asyncio
async def test_build_revision_tree_from_store(store, clock):
    a = await store.create_revision(P, "p1", {})
    clock.advance()
    b = await store.create_revision(P, "p1", {}, parent_revision_id=a.id)
    await store.set_current_revision(P, "p1", b.id)
    clock.advance()
    c = await store.restore_revision(a.id)

    nodes = await store.build_revision_tree(P, "p1")
    assert [n.id for n in nodes] == [c.id, b.id, a.id]
    by_id = {n.id: n for n in nodes}
    assert by_id[a.id].depth == 0
    assert by_id[b.id].depth == 1
    assert by_id[c.id].depth == 2
    assert {n.branch for n in nodes} == {0}
    assert by_id[a.id].children == [b.id]


@pytest.mark.asyncio
async def test_build_revision_tree_empty(store):
    assert await store.build_revision_tree(P, "p1") == []


# -- Retention --


@pytest.mark.asyncio
async def test_delete_old_revisions(store, clock):
    old = await store.create_revision(P, "p1", {})
    clock.advance(100)
    recent = await store.create_revision(P, "p1", {}, parent_revision_id=old.id)
    clock.advance(10)

    deleted = await store.delete_old_revisions(P, "p1", older_than_seconds=50)
    assert deleted == 1
    remaining = [r.id for r in await store.get_revisions(P, "p1")]
    assert remaining == [recent.id]


@pytest.mark.asyncio
async def test_delete_never_removes_current(store, clock):
    old = await store.create_revision(P, "p1", {})
    await store.set_current_revision(P, "p1", old.id)
    clock.advance(10_000)
    await store.create_revision(P, "p1", {}, parent_revision_id=old.id)
    clock.advance(10_000)

    deleted = await store.delete_old_revisions(P, "p1", older_than_seconds=1)
    assert deleted == 1
    current = await store.get_current_revision(P, "p1")
    assert current is not None
    assert current.id == old.id


@pytest.mark.asyncio
async def test_delete_respects_cutoff_boundary(store, clock):
    await store.create_revision(P, "p1", {})
    clock.advance(60)
    # created_at == cutoff is not older than the cutoff
    assert await store.delete_old_revisions(P, "p1", older_than_seconds=60) == 0
    clock.advance(1)
    assert await store.delete_old_revisions(P, "p1", older_than_seconds=60) == 1


@pytest.mark.asyncio
async def test_delete_orphans_children_in_tree(store, clock):
    a = await store.create_revision(P, "p1", {})
    clock.advance(100)
    b = await store.create_revision(P, "p1", {}, parent_revision_id=a.id)
    await store.set_current_revision(P, "p1", b.id)

    await store.delete_old_revisions(P, "p1", older_than_seconds=50)

    nodes = await store.build_revision_tree(P, "p1")
    assert [n.id for n in nodes] == [b.id]
    assert nodes[0].depth == 0
