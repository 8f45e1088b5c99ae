"""Tests for inventory stats, current inventory flags and branch/global metrics."""

import os
import sys
import tempfile
import unittest
from datetime import timedelta
from pathlib import Path

os.environ.setdefault("STOCK_COUNT_TEST_DB", str(Path(tempfile.mkdtemp()) / "stock_count_test.db"))
os.environ["DATABASE_URL"] = f"sqlite:///{os.environ['STOCK_COUNT_TEST_DB']}"
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from helpers import FixedClock, make_branch, make_product

from stock_count.db import init_db
from stock_count.db.base import utcnow
from stock_count.services import metrics
from stock_count.services.branch_resolver import BranchResolver
from stock_count.services.ledger import InventoryLedger


class TestBranchInventory(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        init_db()

    def setUp(self):
        self.branch = make_branch()
        ledger = InventoryLedger(BranchResolver.fixed(self.branch.id))
        self.empty, self.low, self.full = (make_product() for _ in range(3))
        ledger.register_count(self.empty.id, None, 2, "alice")
        ledger.reset_to_zero(self.empty.id, None, "alice")
        ledger.register_count(self.low.id, None, 4, "alice")
        ledger.register_count(self.full.id, None, 40, "alice")

    def test_inventory_stats(self):
        stats = metrics.inventory_stats(self.branch.id)
        self.assertEqual((stats.total_products, stats.total_units), (3, 44))

    def test_current_inventory_flags(self):
        items = {i.product_id: i for i in metrics.current_inventory(self.branch.id)}
        self.assertTrue(items[self.empty.id].is_out_of_stock)
        self.assertTrue(items[self.empty.id].is_low_stock)
        self.assertTrue(items[self.low.id].is_low_stock)
        self.assertFalse(items[self.full.id].is_low_stock)
        self.assertTrue(items[self.full.id].is_recently_counted)
        self.assertEqual(items[self.full.id].days_since_count, 0)
        self.assertEqual(items[self.full.id].code, self.full.mrp_code)

    def test_stale_counts_by_clock(self):
        later = FixedClock(utcnow() + timedelta(days=3, hours=1))
        items = metrics.current_inventory(self.branch.id, clock=later)
        self.assertTrue(all(not i.is_recently_counted for i in items))
        self.assertTrue(all(i.days_since_count == 3 for i in items))

    def test_branch_metrics(self):
        mine = next(m for m in metrics.branch_metrics() if m.branch_id == self.branch.id)
        self.assertEqual(mine.total_products, 3)
        self.assertEqual(mine.total_units, 44)
        self.assertEqual(mine.products_with_stock, 2)
        self.assertEqual(mine.low_stock_products, 1)
        self.assertEqual(mine.stock_percentage, 67)
        self.assertEqual(mine.movements_this_month, 4)
        self.assertIsNotNone(mine.last_movement_at)

    def test_empty_branch_metrics(self):
        bare = make_branch()
        mine = next(m for m in metrics.branch_metrics() if m.branch_id == bare.id)
        self.assertEqual((mine.total_products, mine.stock_percentage, mine.movements_this_month), (0, 0, 0))
        self.assertIsNone(mine.last_movement_at)

    def test_global_metrics(self):
        g = metrics.global_metrics()
        self.assertGreaterEqual(g.total_branches, 1)
        self.assertGreaterEqual(g.total_units, 44)
        self.assertEqual(g.average_units_per_product, round(g.total_units / g.total_products))


if __name__ == "__main__":
    unittest.main()
