"""Unit tests for the DB layer: schema, migrations, transactions, repositories.

Every test uses a fresh temporary SQLite file so tests are isolated and
leave nothing behind in the repo.
"""

from __future__ import annotations

import os
import sqlite3
import tempfile
import threading
import unittest
from pathlib import Path
from unittest.mock import patch

from pattern_discovery.db.category_repo import CategoryRepository
from pattern_discovery.db.database import Database, get_db, reset_db
from pattern_discovery.db.domain_repo import DomainRepository
from pattern_discovery.db.pattern_repo import PatternRepository
from pattern_discovery.db.submission_repo import SubmissionRepository
from pattern_discovery.errors import ValidationError
from pattern_discovery.models.catalog import Category, Domain, Pattern
from pattern_discovery.models.submission import (
    Submission,
    SubmissionInput,
    SubmissionStatus,
    SubmissionType,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _tmp_path() -> Path:
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    return Path(tmp.name)


def _make_db() -> Database:
    """Return a Database backed by a fresh temporary file."""
    db = Database(path=_tmp_path())
    db.init()
    return db


def _remove_files(path: Path) -> None:
    for suffix in ("", "-wal", "-shm"):
        Path(f"{path}{suffix}").unlink(missing_ok=True)


def _drop_db(db: Database) -> None:
    db.close()
    _remove_files(db.path)


def _sample_pattern(**overrides) -> Pattern:
    defaults = dict(
        label="create-widget",
        description="Create a new widget from a description",
        intention="The user wants to create a widget",
        template="# Widget: {{name}}\n",
    )
    defaults.update(overrides)
    return Pattern(**defaults)


# ===========================================================================
# 1. Database core
# ===========================================================================

class TestDatabaseCore(unittest.TestCase):
    def setUp(self):
        self.db = _make_db()

    def tearDown(self):
        _drop_db(self.db)

    def test_tables_created(self):
        tables = self.db.fetchall(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        )
        names = {t["name"] for t in tables}
        expected = {"domains", "categories", "patterns", "submissions"}
        self.assertTrue(expected.issubset(names), f"Missing tables: {expected - names}")

    def test_foreign_keys_enabled(self):
        row = self.db.fetchone("PRAGMA foreign_keys")
        self.assertEqual(row["foreign_keys"], 1)

    def test_init_is_idempotent(self):
        DomainRepository(self.db).create("eng", "Engineering", "Eng")
        self.db.init()
        self.db.init()
        self.assertIsNotNone(DomainRepository(self.db).get_row("eng"))

    def test_second_instance_on_same_file(self):
        other = Database(path=self.db.path)
        other.init()
        try:
            DomainRepository(self.db).create("eng", "Engineering", "Eng")
            self.assertIsNotNone(DomainRepository(other).get_row("eng"))
        finally:
            other.close()

    def test_concurrent_init_calls(self):
        errors: list[BaseException] = []

        def run():
            try:
                self.db.init()
            except BaseException as e:  # pragma: no cover - reported below
                errors.append(e)

        threads = [threading.Thread(target=run) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(errors, [])

    def test_uninitialised_database_refuses_work(self):
        db = Database(path=_tmp_path())
        try:
            with self.assertRaises(RuntimeError):
                db.fetchall("SELECT 1")
            with self.assertRaises(RuntimeError):
                with db.transaction():
                    pass
        finally:
            _drop_db(db)

    def test_transaction_commit(self):
        with self.db.transaction() as conn:
            conn.execute(
                "INSERT INTO domains (slug, name, description) VALUES (?, ?, ?)",
                ("eng", "Engineering", "Eng"),
            )
        row = self.db.fetchone("SELECT * FROM domains WHERE slug = 'eng'")
        self.assertIsNotNone(row)
        self.assertEqual(row["name"], "Engineering")

    def test_transaction_rollback(self):
        try:
            with self.db.transaction() as conn:
                conn.execute(
                    "INSERT INTO domains (slug, name, description) VALUES (?, ?, ?)",
                    ("rollback", "R", "R"),
                )
                raise ValueError("Force rollback")
        except ValueError:
            pass
        self.assertIsNone(self.db.fetchone("SELECT * FROM domains WHERE slug = 'rollback'"))

    def test_no_unlocked_cursor_helper(self):
        # reads go through fetchone/fetchall, which hold the lock until rows are fetched
        self.assertFalse(hasattr(self.db, "execute"))

    def test_drop_db_removes_wal_files(self):
        db = _make_db()
        with db.transaction() as conn:
            conn.execute(
                "INSERT INTO domains (slug, name, description) VALUES (?, ?, ?)",
                ("tmp", "T", "T"),
            )
        _drop_db(db)
        for suffix in ("", "-wal", "-shm"):
            self.assertFalse(Path(f"{db.path}{suffix}").exists())

    def test_nested_transaction_rolls_back_as_one_unit(self):
        repo = DomainRepository(self.db)
        try:
            with self.db.transaction():
                repo.create("outer", "Outer", "o")
                repo.create("inner", "Inner", "i")  # commits only with the outer block
                raise ValueError("Force rollback")
        except ValueError:
            pass
        self.assertIsNone(repo.get_row("outer"))
        self.assertIsNone(repo.get_row("inner"))


# ===========================================================================
# 2. Schema migrations
# ===========================================================================

_LEGACY_SUBMISSIONS = """
CREATE TABLE submissions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    type TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending',
    target_pattern_id INTEGER,
    domain_slug TEXT,
    category_slug TEXT,
    label TEXT NOT NULL,
    description TEXT NOT NULL,
    intention TEXT NOT NULL,
    template TEXT NOT NULL,
    submitted_at TEXT NOT NULL,
    reviewed_at TEXT
);
INSERT INTO submissions
    (type, domain_slug, category_slug, label, description, intention, template, submitted_at)
VALUES ('new', 'eng', 'features', 'old', 'd', 'i', 't', '2024-01-01T00:00:00Z');
"""


class TestMigrations(unittest.TestCase):
    def setUp(self):
        self.path = _tmp_path()
        conn = sqlite3.connect(str(self.path))
        conn.executescript(_LEGACY_SUBMISSIONS)
        conn.commit()
        conn.close()

    def tearDown(self):
        _remove_files(self.path)

    def test_adds_missing_source_column(self):
        db = Database(path=self.path)
        db.init()
        try:
            columns = {r["name"] for r in db.fetchall("PRAGMA table_info(submissions)")}
            self.assertIn("source", columns)

            legacy = SubmissionRepository(db).get_by_id(1)
            self.assertEqual(legacy.label, "old")
            self.assertIsNone(legacy.source)
            self.assertEqual(legacy.status, SubmissionStatus.PENDING)
        finally:
            db.close()

    def test_migration_runs_once(self):
        db = Database(path=self.path)
        db.init()
        db.init()
        try:
            columns = [r["name"] for r in db.fetchall("PRAGMA table_info(submissions)")]
            self.assertEqual(columns.count("source"), 1)
        finally:
            db.close()


# ===========================================================================
# 3. Models
# ===========================================================================

class TestCatalogModels(unittest.TestCase):
    def test_pattern_from_row(self):
        p = Pattern.from_row({
            "id": 3, "label": "l", "description": "d", "intention": "i", "template": "t",
        })
        self.assertEqual(p.id, 3)
        self.assertEqual(p.to_dict()["label"], "l")

    def test_domain_to_dict_nests_categories(self):
        d = Domain("eng", "Engineering", "Eng", [
            Category("features", "Features", "F", [_sample_pattern(id=1)]),
        ])
        data = d.to_dict()
        self.assertEqual(data["categories"][0]["slug"], "features")
        self.assertEqual(data["categories"][0]["patterns"][0]["id"], 1)
        self.assertNotIn("categories", d.summary())


class TestSubmissionInput(unittest.TestCase):
    def _payload(self, **overrides):
        payload = dict(
            type="new", domain_slug="eng", category_slug="features",
            label="l", description="d", intention="i", template="t",
        )
        payload.update(overrides)
        return payload

    def test_valid_new(self):
        sub = SubmissionInput.from_payload(self._payload())
        self.assertEqual(sub.type, SubmissionType.NEW)

    def test_valid_modify(self):
        sub = SubmissionInput.from_payload(self._payload(
            type="modify", domain_slug=None, category_slug=None, target_pattern_id=4,
        ))
        self.assertEqual(sub.target_pattern_id, 4)

    def test_unknown_type(self):
        with self.assertRaises(ValidationError):
            SubmissionInput.from_payload(self._payload(type="delete"))

    def test_new_requires_slugs(self):
        with self.assertRaises(ValidationError):
            SubmissionInput.from_payload(self._payload(category_slug=None))

    def test_modify_requires_target(self):
        with self.assertRaises(ValidationError):
            SubmissionInput.from_payload(self._payload(type="modify"))

    def test_modify_rejects_non_integer_target(self):
        with self.assertRaises(ValidationError):
            SubmissionInput.from_payload(self._payload(type="modify", target_pattern_id="7"))

    def test_modify_rejects_target_outside_row_id_range(self):
        for tid in (0, -1, 2**63, 2**64, True):
            with self.subTest(tid=tid), self.assertRaises(ValidationError):
                SubmissionInput.from_payload(self._payload(type="modify", target_pattern_id=tid))
        sub = SubmissionInput.from_payload(self._payload(type="modify", target_pattern_id=2**63 - 1))
        self.assertEqual(sub.target_pattern_id, 2**63 - 1)

    def test_blank_content_field(self):
        with self.assertRaises(ValidationError) as ctx:
            SubmissionInput.from_payload(self._payload(template="   "))
        self.assertIn("template", str(ctx.exception))

    def test_submission_from_row(self):
        s = Submission.from_row({
            "id": 1, "type": "modify", "status": "accepted", "target_pattern_id": 9,
            "domain_slug": None, "category_slug": None,
            "label": "l", "description": "d", "intention": "i", "template": "t",
            "source": "cli", "submitted_at": "2024-01-01T00:00:00Z",
            "reviewed_at": "2024-01-02T00:00:00Z",
        })
        self.assertEqual(s.type, SubmissionType.MODIFY)
        self.assertEqual(s.status, SubmissionStatus.ACCEPTED)
        self.assertFalse(s.is_pending)


# ===========================================================================
# 4. Repositories
# ===========================================================================

class TestHierarchyRepositories(unittest.TestCase):
    def setUp(self):
        self.db = _make_db()
        self.domains = DomainRepository(self.db)
        self.categories = CategoryRepository(self.db)
        self.patterns = PatternRepository(self.db)

    def tearDown(self):
        _drop_db(self.db)

    def test_duplicate_domain_slug_raises(self):
        self.domains.create("eng", "Engineering", "Eng")
        with self.assertRaises(sqlite3.IntegrityError):
            self.domains.create("eng", "Other", "Other")

    def test_category_fk_constraint(self):
        with self.assertRaises(sqlite3.IntegrityError):
            self.categories.create(999, "features", "Features", "F")

    def test_categories_listed_by_slug(self):
        did = self.domains.create("eng", "Engineering", "Eng")
        self.categories.create(did, "zeta", "Zeta", "z")
        self.categories.create(did, "alpha", "Alpha", "a")
        self.assertEqual([r["slug"] for r in self.categories.list_rows(did)], ["alpha", "zeta"])

    def test_partial_update_keeps_other_fields(self):
        self.domains.create("eng", "Engineering", "Eng")
        self.assertTrue(self.domains.update("eng", name="Engineering 2"))
        row = self.domains.get_row("eng")
        self.assertEqual(row["name"], "Engineering 2")
        self.assertEqual(row["description"], "Eng")

    def test_update_missing_returns_false(self):
        self.assertFalse(self.domains.update("nope", name="x"))
        self.assertFalse(self.patterns.update(42))

    def test_pattern_union_ordering(self):
        did = self.domains.create("eng", "Engineering", "Eng")
        b = self.categories.create(did, "b", "B", "b")
        a = self.categories.create(did, "a", "A", "a")
        p1 = self.patterns.create(b, _sample_pattern(label="b1"))
        p2 = self.patterns.create(a, _sample_pattern(label="a1"))
        p3 = self.patterns.create(b, _sample_pattern(label="b2"))
        found = self.patterns.list_for_categories(did, ["b", "a"])
        self.assertEqual([p.id for p in found], [p2, p1, p3])

    def test_domain_delete_cascades(self):
        did = self.domains.create("eng", "Engineering", "Eng")
        cid = self.categories.create(did, "features", "Features", "F")
        self.patterns.create(cid, _sample_pattern())
        self.assertTrue(self.domains.delete("eng"))
        self.assertEqual(self.db.fetchone("SELECT COUNT(*) AS n FROM categories")["n"], 0)
        self.assertEqual(self.db.fetchone("SELECT COUNT(*) AS n FROM patterns")["n"], 0)


class TestSubmissionRepository(unittest.TestCase):
    def setUp(self):
        self.db = _make_db()
        self.repo = SubmissionRepository(self.db)

    def tearDown(self):
        _drop_db(self.db)

    def _input(self, **overrides) -> SubmissionInput:
        fields = dict(
            type=SubmissionType.NEW, domain_slug="eng", category_slug="features",
            label="l", description="d", intention="i", template="t",
        )
        fields.update(overrides)
        return SubmissionInput(**fields)

    def test_create_pending(self):
        sid = self.repo.create(self._input(source="mcp:test"))
        sub = self.repo.get_by_id(sid)
        self.assertEqual(sub.status, SubmissionStatus.PENDING)
        self.assertEqual(sub.source, "mcp:test")
        self.assertIsNone(sub.reviewed_at)
        self.assertTrue(sub.submitted_at.endswith("Z"))

    def test_list_newest_first(self):
        first = self.repo.create(self._input(label="first"), submitted_at="2024-01-01T00:00:00Z")
        second = self.repo.create(self._input(label="second"), submitted_at="2024-02-01T00:00:00Z")
        third = self.repo.create(self._input(label="third"), submitted_at="2024-02-01T00:00:00Z")
        self.assertEqual([s.id for s in self.repo.list_all()], [third, second, first])

    def test_mark_reviewed_only_once(self):
        sid = self.repo.create(self._input())
        self.assertTrue(self.repo.mark_reviewed(sid, SubmissionStatus.REJECTED))
        self.assertFalse(self.repo.mark_reviewed(sid, SubmissionStatus.ACCEPTED))
        sub = self.repo.get_by_id(sid)
        self.assertEqual(sub.status, SubmissionStatus.REJECTED)
        self.assertIsNotNone(sub.reviewed_at)


# ===========================================================================
# 5. Default path and module singleton
# ===========================================================================

class TestDefaultDatabase(unittest.TestCase):
    def setUp(self):
        self.paths: list[Path] = []

    def tearDown(self):
        reset_db()
        for path in self.paths:
            _remove_files(path)

    def _path(self) -> Path:
        path = _tmp_path()
        self.paths.append(path)
        return path

    def test_path_from_environment(self):
        path = self._path()
        with patch.dict(os.environ, {"PATTERNS_DB_PATH": str(path)}):
            db = Database()
        self.assertEqual(db.path, path)

    def test_singleton_is_initialised_and_reset(self):
        db = get_db(self._path())
        self.assertTrue(db.ready)
        self.assertIs(get_db(), db)

        reset_db()
        self.assertFalse(db.ready)
        other = get_db(self._path())
        self.assertIsNot(other, db)


if __name__ == "__main__":
    unittest.main()
