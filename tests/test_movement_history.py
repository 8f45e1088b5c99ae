"""Tests for MovementHistoryReader: recent list, filters, search, pagination."""

import os
import sys
import tempfile
import unittest
from datetime import timedelta
from pathlib import Path

os.environ.setdefault("STOCK_COUNT_TEST_DB", str(Path(tempfile.mkdtemp()) / "stock_count_test.db"))
os.environ["DATABASE_URL"] = f"sqlite:///{os.environ['STOCK_COUNT_TEST_DB']}"
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from helpers import add_movement, make_branch, make_product

from stock_count.db import init_db
from stock_count.db.base import utcnow
from stock_count.exceptions import MissingBranchContext
from stock_count.models.ledger import MovementFilter
from stock_count.services.branch_resolver import BranchResolver
from stock_count.services.ledger import InventoryLedger
from stock_count.services.movement_history import MovementHistoryReader


class TestRecentMovements(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        init_db()

    def setUp(self):
        self.branch = make_branch()
        self.resolver = BranchResolver.fixed(self.branch.id)
        self.reader = MovementHistoryReader(self.resolver)

    def test_newest_first_with_product_details(self):
        product = make_product(brand="Pretul", description="Cinta métrica 5 m")
        ledger = InventoryLedger(self.resolver)
        ledger.register_count(product.id, None, 2, "alice")
        ledger.register_count(product.id, None, 3, "alice")
        ledger.reset_to_zero(product.id, None, "alice")

        views = self.reader.get_recent()

        self.assertEqual([v.new_quantity for v in views], [0, 5, 2])
        self.assertEqual(views[0].movement_type, "adjustment")
        self.assertEqual(views[0].difference, -5)
        self.assertEqual(views[1].product_description, "Cinta métrica 5 m")
        self.assertEqual(views[1].product_brand, "Pretul")
        self.assertEqual(views[1].product_code, product.mrp_code)

    def test_limit_and_branch_scope(self):
        product = make_product()
        other = make_branch()
        for i in range(12):
            add_movement(product.id, self.branch.id, i, i + 1)
        add_movement(product.id, other.id, 0, 1)

        views = self.reader.get_recent(limit=10)
        self.assertEqual(len(views), 10)
        self.assertTrue(all(v.branch_id == self.branch.id for v in views))
        self.assertEqual(len(self.reader.get_recent(other.id)), 1)

    def test_requires_branch(self):
        with self.assertRaises(MissingBranchContext):
            MovementHistoryReader(BranchResolver()).get_recent()


class TestFilteredMovements(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        init_db()

    def setUp(self):
        self.branch = make_branch()
        self.reader = MovementHistoryReader(BranchResolver.fixed(self.branch.id))
        self.hammer = make_product(brand="Truper", description="Martillo de uña 16 oz")
        self.tape = make_product(brand="Pretul", description="Cinta métrica 5 m")

    def test_pagination_after_filtering(self):
        for i in range(25):
            add_movement(self.hammer.id, self.branch.id, i, i + 1)
        for i in range(4):
            add_movement(self.tape.id, self.branch.id, i, i + 1)

        first = self.reader.get_filtered(None, MovementFilter(search="martillo", page=1, page_size=10))
        last = self.reader.get_filtered(None, MovementFilter(search="martillo", page=3, page_size=10))

        self.assertEqual(first.total_items, 25)
        self.assertEqual(first.total_pages, 3)
        self.assertEqual(len(first.items), 10)
        self.assertEqual(len(last.items), 5)
        self.assertTrue(all(v.product_id == self.hammer.id for v in first.items + last.items))
        ids = [v.id for v in first.items]
        self.assertEqual(ids, sorted(ids, reverse=True))

    def test_search_fields_case_insensitive(self):
        add_movement(self.hammer.id, self.branch.id, 0, 1, acting_user="Rosa")
        add_movement(self.tape.id, self.branch.id, 0, 2, acting_user="luis")

        def search(term):
            return {v.product_id for v in self.reader.get_filtered(None, MovementFilter(search=term)).items}

        self.assertEqual(search("PRETUL"), {self.tape.id})
        self.assertEqual(search("rosa"), {self.hammer.id})
        self.assertEqual(search(self.hammer.truper_code.lower()), {self.hammer.id})
        self.assertEqual(search(self.tape.mrp_code), {self.tape.id})
        self.assertEqual(search("métrica"), {self.tape.id})
        self.assertEqual(search("no-such-thing"), set())

    def test_type_and_date_range(self):
        now = utcnow()
        add_movement(self.hammer.id, self.branch.id, 0, 1, movement_type="count", created_at=now - timedelta(hours=2))
        add_movement(self.hammer.id, self.branch.id, 1, 0, movement_type="adjustment", created_at=now - timedelta(days=3))
        add_movement(self.hammer.id, self.branch.id, 0, 4, movement_type="count", created_at=now - timedelta(days=20))
        add_movement(self.hammer.id, self.branch.id, 4, 5, movement_type="count", created_at=now - timedelta(days=45))

        def total(**kwargs):
            return self.reader.get_filtered(None, MovementFilter(**kwargs)).total_items

        self.assertEqual(total(date_range="day"), 1)
        self.assertEqual(total(date_range="week"), 2)
        self.assertEqual(total(date_range="month"), 3)
        self.assertEqual(total(date_range="all"), 4)
        self.assertEqual(total(movement_type="count"), 3)
        self.assertEqual(total(movement_type="adjustment", date_range="day"), 0)
        self.assertEqual(total(since=now - timedelta(days=30), until=now - timedelta(days=1)), 2)

    def test_empty_branch(self):
        page = self.reader.get_filtered(None, MovementFilter())
        self.assertEqual(page.items, [])
        self.assertEqual(page.total_items, 0)
        self.assertEqual(page.total_pages, 0)


if __name__ == "__main__":
    unittest.main()
