"""SQLite persistence boundary: load, save, upsert, delete, and bad records."""

import json
import sqlite3
import sys
from pathlib import Path

import pytest

ORBIT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ORBIT_ROOT))

from orbit.models import ItemContractError
from orbit.ranking import rank_items
from orbit.signals import record_interaction
from orbit.storage import ItemDB
from tests.conftest import NOW, make_context, make_item


class TestLoadSave:

    def test_empty_db_loads_nothing(self, db):
        assert db.load() == []
        assert db.count() == 0

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "orbit.db"
        with ItemDB(str(path)) as db:
            assert db.count() == 0
        assert path.exists()

    def test_save_and_load(self, db):
        items = [make_item(f"Item {i}", created_at=NOW + i) for i in range(3)]
        db.save(items)
        loaded = db.load()
        assert [i.id for i in loaded] == [i.id for i in items]

    def test_load_orders_by_creation(self, db):
        late = make_item("late", created_at=NOW + 100)
        early = make_item("early", created_at=NOW)
        db.save([late, early])
        assert [i.title for i in db.load()] == ["early", "late"]

    def test_save_replaces_collection(self, db):
        db.save([make_item("a"), make_item("b")])
        db.save([make_item("c")])
        assert [i.title for i in db.load()] == ["c"]

    def test_signals_survive(self, db):
        item = record_interaction(make_item(), "opened", make_context(hour=7, day=4, place="work"))
        db.save([item])
        loaded = db.get(item.id)
        assert loaded.signals == item.signals

    def test_computed_survives(self, db):
        ranked = rank_items([make_item()], make_context()).all[0]
        db.upsert(ranked.id, ranked)
        assert db.get(ranked.id).computed == ranked.computed

    def test_populated_fixture(self, populated_db):
        with ItemDB(populated_db) as db:
            assert db.count() == 8


class TestUpsertDelete:

    def test_upsert_inserts(self, db):
        item = make_item("fresh")
        db.upsert(item.id, item)
        assert db.get(item.id).title == "fresh"

    def test_upsert_replaces(self, db):
        item = make_item("v1")
        db.upsert(item.id, item)
        updated = record_interaction(item, "seen", make_context())
        db.upsert(updated.id, updated)
        assert db.count() == 1
        assert db.get(item.id).signals.seen_count == 1

    def test_upsert_id_mismatch(self, db):
        item = make_item()
        with pytest.raises(ValueError):
            db.upsert("someone-else", item)

    def test_delete(self, db):
        keep, drop = make_item("keep"), make_item("drop")
        db.save([keep, drop])
        db.delete(drop.id)
        assert [i.id for i in db.load()] == [keep.id]

    def test_delete_missing_is_noop(self, db):
        db.save([make_item()])
        db.delete("nope")
        assert db.count() == 1

    def test_get_missing(self, db):
        assert db.get("nope") is None


class TestBadRecords:

    def test_missing_signal_field_fails_fast(self, tmp_db):
        item = make_item()
        with ItemDB(tmp_db) as db:
            db.save([item])
        broken = item.signals.to_dict()
        del broken["seen_count"]
        conn = sqlite3.connect(tmp_db)
        conn.execute("UPDATE items SET signals = ? WHERE id = ?", (json.dumps(broken), item.id))
        conn.commit()
        conn.close()
        with ItemDB(tmp_db) as db:
            with pytest.raises(ItemContractError):
                db.load()

    def test_sql_in_title_is_stored_verbatim(self, db):
        item = make_item("Robert'); DROP TABLE items; --")
        db.upsert(item.id, item)
        assert "DROP TABLE" in db.get(item.id).title
        assert db.count() == 1


class TestStats:

    def test_stats(self, populated_db):
        with ItemDB(populated_db) as db:
            stats = db.get_stats()
        assert stats["item_count"] == 8
        assert stats["db_size_mb"] >= 0
