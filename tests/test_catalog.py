"""Tests for catalog repositories and CSV seeding."""

import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

os.environ.setdefault("STOCK_COUNT_TEST_DB", str(Path(tempfile.mkdtemp()) / "stock_count_test.db"))
os.environ["DATABASE_URL"] = f"sqlite:///{os.environ['STOCK_COUNT_TEST_DB']}"
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from helpers import insert_product_raw, make_branch, make_product, unique

from stock_count.db import get_session, init_db
from stock_count.db.models import Branch, Product
from stock_count.db.repositories import branch_repo, product_repo
from stock_count.db.seed_data import seed_mock_data
from stock_count.exceptions import DuplicateProductCode


class TestProductRepo(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        init_db()

    def test_find_by_either_code_trimmed(self):
        product = make_product()
        self.assertEqual(product_repo.find_by_code(product.mrp_code).id, product.id)
        self.assertEqual(product_repo.find_by_code(f"  {product.truper_code}\t").id, product.id)
        self.assertIsNone(product_repo.find_by_code("   "))
        self.assertIsNone(product_repo.find_by_code(unique("NONE")))

    def test_truper_code_takes_precedence(self):
        code = unique("SCAN")
        by_mrp = insert_product_raw(code, None)
        by_truper = insert_product_raw(None, code)
        self.assertNotEqual(by_mrp, by_truper)
        self.assertEqual(product_repo.find_by_code(code).id, by_truper)

    def test_create_rejects_code_used_in_other_namespace(self):
        product = make_product()
        with self.assertRaises(DuplicateProductCode) as ctx:
            product_repo.create(mrp_code=product.truper_code)
        self.assertEqual(ctx.exception.product_code, product.truper_code)
        self.assertEqual(ctx.exception.product_id, product.id)

    def test_display_code(self):
        self.assertEqual(make_product(mrp_code=None).display_code[:3], "TRU")
        self.assertEqual(make_product(truper_code=None).display_code[:3], "MRP")


class TestBranchRepo(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        init_db()

    def test_create_get_list(self):
        branch = make_branch(region="  Norte ")
        self.assertEqual(branch.region, "Norte")
        self.assertEqual(branch_repo.get(branch.id).name, branch.name)
        self.assertIn(branch.id, [b.id for b in branch_repo.list_all()])
        self.assertIsNone(branch_repo.get(999_999_999))


class TestSeedData(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        init_db()

    def test_seed_skips_blank_and_duplicate_rows(self):
        code = unique("SEED")
        branches = [{"name": unique("Sucursal"), "region": "Sur"}, {"name": "  ", "region": "x"}]
        products = [
            {"mrp_code": code, "truper_code": "", "brand": "Truper", "description": "uno"},
            {"mrp_code": "", "truper_code": code, "brand": "Truper", "description": "dup"},
            {"mrp_code": "", "truper_code": "", "brand": "Truper", "description": "sin código"},
        ]
        with patch("stock_count.db.seed_data.load_branches", return_value=branches), patch(
            "stock_count.db.seed_data.load_products", return_value=products
        ):
            with get_session() as session:
                seed_mock_data(session)

        with get_session() as session:
            self.assertEqual(session.query(Branch).filter_by(name=branches[0]["name"]).count(), 1)
            seeded = session.query(Product).filter((Product.mrp_code == code) | (Product.truper_code == code)).all()
            self.assertEqual([p.description for p in seeded], ["uno"])


if __name__ == "__main__":
    unittest.main()
