"""Plot repository: CRUD, partial updates and all-or-nothing geometry writes."""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from landplots.errors import (
    DecodeError,
    DuplicateKeyError,
    MissingFieldError,
    NotClosedError,
    NotFoundError,
    StorageError,
    TooFewVerticesError,
)
from landplots.models.plot import Plot
from landplots.services import plot_service
from landplots.utils.geometry_codec import from_storage_bytes

SQUARE_CW = ((0.0, 0.0), (0.0, 1.0), (1.0, 1.0), (1.0, 0.0), (0.0, 0.0))
SQUARE_CCW = ((0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0), (0.0, 0.0))
RECTANGLE = ((0.0, 0.0), (2.0, 0.0), (2.0, 3.0), (0.0, 3.0), (0.0, 0.0))


def _snapshot(plot):
    return (bytes(plot.geom), plot.area, plot.perimeter, list(plot.side_lengths))


def _count(db):
    return db.query(Plot).count()


# --- create ---

def test_create_persists_canonical_geometry_and_measurements(repo):
    plot = repo.create("North field", "Alice", SQUARE_CW, {"crop": "maize"})

    assert plot.id is not None, "repository must assign an id"
    assert plot.created_at is not None and plot.updated_at is not None
    assert plot.properties == {"crop": "maize"}

    ring = from_storage_bytes(plot.geom)
    assert ring == SQUARE_CCW, "stored ring should be normalised counter-clockwise"
    assert ring[0] == ring[-1]
    assert plot.area == pytest.approx(1.0)
    assert plot.perimeter == pytest.approx(4.0)
    assert plot.side_lengths == pytest.approx([1.0, 1.0, 1.0, 1.0])


def test_create_strips_text_fields(repo):
    plot = repo.create("  Plot 7 ", " Bob ", SQUARE_CCW)
    assert (plot.name, plot.owner) == ("Plot 7", "Bob")
    assert plot.properties is None


@pytest.mark.parametrize("name,owner", [("", "Alice"), ("Field", "   "), (None, "Alice")])
def test_create_requires_name_and_owner(repo, db, name, owner):
    with pytest.raises(MissingFieldError):
        repo.create(name, owner, SQUARE_CCW)
    assert _count(db) == 0


def test_create_requires_geometry(repo, db):
    with pytest.raises(MissingFieldError) as info:
        repo.create("Field", "Alice", None)
    assert info.value.field == "geometry"
    assert _count(db) == 0


def test_create_rejects_invalid_geometry_without_side_effect(repo, db):
    with pytest.raises(TooFewVerticesError):
        repo.create("Field", "Alice", ((0.0, 0.0), (1.0, 1.0)))
    assert _count(db) == 0


def test_create_maps_integrity_error_to_duplicate_key(repo, db, monkeypatch):
    def broken_flush(*args, **kwargs):
        raise IntegrityError("INSERT INTO land_plots", {}, Exception("UNIQUE constraint failed"))

    monkeypatch.setattr(db, "flush", broken_flush)
    with pytest.raises(DuplicateKeyError):
        repo.create("Field", "Alice", SQUARE_CCW)
    monkeypatch.undo()
    assert _count(db) == 0


# --- read ---

def test_get_returns_plot_and_unknown_id_fails(repo):
    plot = repo.create("Field", "Alice", SQUARE_CCW)
    assert repo.get(plot.id).name == "Field"
    with pytest.raises(NotFoundError) as info:
        repo.get(9999)
    assert info.value.plot_id == 9999


def test_list_all_with_ordering(repo):
    repo.create("b", "Alice", SQUARE_CCW)
    repo.create("a", "Alice", RECTANGLE)

    assert {p.name for p in repo.list_all()} == {"a", "b"}
    assert [p.name for p in repo.list_all(order_by="name")] == ["a", "b"]
    assert [p.name for p in repo.list_all(order_by="area")] == ["b", "a"]


def test_list_all_rejects_unknown_ordering(repo):
    with pytest.raises(DecodeError):
        repo.list_all(order_by="geom")


def test_storage_failure_on_read_is_reported(repo, db, monkeypatch):
    def broken_execute(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "execute", broken_execute)
    with pytest.raises(StorageError) as info:
        repo.list_all()
    assert info.value.transient is True


# --- update ---

def test_update_owner_only_keeps_geometry_and_measurements(repo):
    plot = repo.create("Field", "Alice", SQUARE_CW)
    before = _snapshot(plot)
    created_at = plot.created_at

    updated = repo.update(plot.id, {"owner": "X"})

    assert updated.owner == "X"
    assert updated.name == "Field"
    assert _snapshot(updated) == before
    assert updated.created_at == created_at
    assert updated.updated_at >= created_at


def test_update_geometry_recomputes_everything(repo):
    plot = repo.create("Field", "Alice", SQUARE_CCW)
    updated = repo.update(plot.id, {"geometry": RECTANGLE})

    assert from_storage_bytes(updated.geom) == RECTANGLE
    assert updated.area == pytest.approx(6.0)
    assert updated.perimeter == pytest.approx(10.0)
    assert updated.side_lengths == pytest.approx([2.0, 3.0, 2.0, 3.0])


def test_update_properties_and_name(repo):
    plot = repo.create("Field", "Alice", SQUARE_CCW, {"a": 1})
    updated = repo.update(plot.id, {"name": "Renamed", "properties": {"b": 2}})
    assert updated.name == "Renamed"
    assert updated.properties == {"b": 2}


def test_update_unknown_plot(repo):
    with pytest.raises(NotFoundError):
        repo.update(404, {"owner": "X"})


def test_update_cannot_remove_geometry_or_blank_owner(repo):
    plot = repo.create("Field", "Alice", SQUARE_CCW)
    with pytest.raises(MissingFieldError):
        repo.update(plot.id, {"geometry": None})
    with pytest.raises(MissingFieldError):
        repo.update(plot.id, {"owner": ""})
    assert repo.get(plot.id).owner == "Alice"


def test_update_rejects_unknown_fields(repo):
    plot = repo.create("Field", "Alice", SQUARE_CCW)
    with pytest.raises(DecodeError):
        repo.update(plot.id, {"area": 10})


def test_invalid_geometry_update_leaves_row_untouched(repo):
    plot = repo.create("Field", "Alice", SQUARE_CCW)
    before = _snapshot(plot)

    with pytest.raises(NotClosedError):
        repo.update(plot.id, {"owner": "Bob", "geometry": RECTANGLE[:-1]})

    reread = repo.get(plot.id)
    assert reread.owner == "Alice", "no field may change when the geometry is rejected"
    assert _snapshot(reread) == before


def test_failed_commit_leaves_no_partial_geometry_update(repo, db, monkeypatch):
    """
    Simulate a crash after the UPDATE was flushed but before commit: geometry,
    area, perimeter and side lengths must all keep their old values.
    """
    plot = repo.create("Field", "Alice", SQUARE_CCW)
    before = _snapshot(plot)

    def broken_commit():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", broken_commit)
    with pytest.raises(StorageError):
        repo.update(plot.id, {"geometry": RECTANGLE})
    monkeypatch.undo()

    reread = repo.get(plot.id)
    assert _snapshot(reread) == before


def test_connection_lost_after_commit_is_a_storage_error(repo, db, monkeypatch):
    """
    The write commits, then the connection drops before the expired row is
    read back: the caller sees StorageError and the update is still durable.
    """
    plot = repo.create("Field", "Alice", SQUARE_CCW)
    real_commit = db.commit

    def broken_execute(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("server closed the connection"))

    def commit_then_disconnect():
        real_commit()
        monkeypatch.setattr(db, "execute", broken_execute)

    monkeypatch.setattr(db, "commit", commit_then_disconnect)
    with pytest.raises(StorageError) as info:
        plot_service.update_plot(repo, plot.id, {"owner": "X"})
    assert info.value.transient is True
    monkeypatch.undo()

    assert repo.get(plot.id).owner == "X"


def test_row_returned_by_a_write_needs_no_further_reads(repo, db, monkeypatch):
    plot = repo.create("Field", "Alice", SQUARE_CCW)
    updated = repo.update(plot.id, {"owner": "X"})

    def no_more_queries(*args, **kwargs):
        raise AssertionError("exchange encoding must not query the database")

    monkeypatch.setattr(db, "execute", no_more_queries)
    exchange = plot_service.plot_to_exchange(updated)
    assert exchange["owner"] == "X"
    assert exchange["geometry"] == [list(c) for c in SQUARE_CCW]


# --- delete ---

def test_delete_is_hard_and_second_delete_fails(repo, db):
    plot = repo.create("Field", "Alice", SQUARE_CCW)
    repo.delete(plot.id)

    assert _count(db) == 0
    with pytest.raises(NotFoundError):
        repo.get(plot.id)
    with pytest.raises(NotFoundError):
        repo.delete(plot.id)
