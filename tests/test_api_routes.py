"""Tests for the HTTP API: principal headers, error mapping, ledger, history, reconciliation, reports, admin."""

import os
import sys
import tempfile
import unittest
from io import BytesIO
from pathlib import Path

os.environ.setdefault("STOCK_COUNT_TEST_DB", str(Path(tempfile.mkdtemp()) / "stock_count_test.db"))
os.environ["DATABASE_URL"] = f"sqlite:///{os.environ['STOCK_COUNT_TEST_DB']}"
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fastapi.testclient import TestClient
from helpers import make_branch, make_product, unique
from openpyxl import Workbook, load_workbook

from stock_count.api.movement_routes import XLSX_MEDIA_TYPE
from stock_count.api.server import create_app
from stock_count.db import init_db


class TestApiRoutes(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        init_db()
        cls.client = TestClient(create_app())

    def setUp(self):
        self.branch = make_branch()
        self.product = make_product(brand="Truper", description="Martillo de uña")
        self.staff = {"X-User": "alice", "X-Role": "staff", "X-Branch-Id": str(self.branch.id)}

    def _count(self, quantity, headers=None, **body):
        body.setdefault("product_id", self.product.id)
        return self.client.post("/inventory/counts", json={"quantity": quantity, **body}, headers=headers or self.staff)

    def test_health(self):
        r = self.client.get("/health")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"status": "ok"})

    def test_register_count_is_additive(self):
        self.assertEqual(self._count(10).json()["new_quantity"], 10)
        r = self._count(5)
        self.assertEqual(r.status_code, 200)
        data = r.json()
        self.assertEqual((data["previous_quantity"], data["added_quantity"], data["new_quantity"]), (10, 5, 15))

    def test_count_by_scanned_code(self):
        r = self._count(3, product_id=None, code=f" {self.product.truper_code} ")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["product_id"], self.product.id)

        r = self._count(3, product_id=None, code=unique("UNKNOWN"))
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json()["error"], "PRODUCT_NOT_FOUND")

    def test_error_mapping(self):
        r = self._count(-1)
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "INVALID_QUANTITY")
        self.assertFalse(r.json()["retryable"])

        r = self._count(1, headers={"X-User": "alice"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "MISSING_BRANCH_CONTEXT")

        r = self._count(1, headers={"X-Branch-Id": str(self.branch.id)})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "MISSING_ACTOR")

        r = self._count(1, headers={**self.staff, "X-Role": "owner"})
        self.assertEqual(r.status_code, 400)

    def test_admin_counts_against_selected_branch(self):
        admin = {"X-User": "root", "X-Role": "admin", "X-Selected-Branch-Id": str(self.branch.id)}
        r = self._count(4, headers=admin)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["branch_id"], self.branch.id)

    def test_reset_and_current_inventory(self):
        self._count(8)
        r = self.client.post("/inventory/resets", json={"product_id": self.product.id}, headers=self.staff)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["previous_quantity"], 8)

        items = self.client.get("/inventory/current", headers=self.staff).json()
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0]["quantity"], 0)
        self.assertTrue(items[0]["is_out_of_stock"])
        self.assertTrue(items[0]["is_recently_counted"])

        stats = self.client.get("/inventory/stats", headers=self.staff).json()
        self.assertEqual((stats["total_products"], stats["total_units"]), (1, 0))

    def test_movement_history(self):
        self._count(2)
        self._count(3)
        recent = self.client.get("/movements/recent", headers=self.staff).json()
        self.assertEqual([m["new_quantity"] for m in recent], [5, 2])

        page = self.client.get("/movements", params={"search": "martillo", "page_size": 1}, headers=self.staff).json()
        self.assertEqual(page["total_items"], 2)
        self.assertEqual(page["total_pages"], 2)
        self.assertEqual(len(page["items"]), 1)

        r = self.client.get("/movements", params={"export": "true"}, headers=self.staff)
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.headers["content-type"].startswith(XLSX_MEDIA_TYPE))
        self.assertIn("historial_movimientos_", r.headers["content-disposition"])

    def test_reconciliation_json_and_export(self):
        self._count(15)
        body = {
            "headers": ["Material", "Texto breve de material", "Libre utilización", "Valor unitario"],
            "rows": [[self.product.mrp_code, "Martillo", 8, 2.5], [unique("X"), "Otro", 1, None]],
        }
        r = self.client.post("/reconciliation", json=body, headers=self.staff)
        self.assertEqual(r.status_code, 200)
        data = r.json()
        self.assertEqual(data["rows"][0]["quantity_variance"], 7)
        self.assertAlmostEqual(data["rows"][0]["cost_variance"], 17.5)
        self.assertEqual(data["summary"]["unmatched_count"], 1)

        r = self.client.post("/reconciliation", params={"export": "true"}, json=body, headers=self.staff)
        self.assertEqual(r.status_code, 200)
        self.assertIn("reporte_comparacion_", r.headers["content-disposition"])
        ws = load_workbook(BytesIO(r.content)).active
        self.assertEqual(ws.title, "Reporte de Comparación")
        self.assertEqual(ws.cell(row=2, column=5).value, 7)

        r = self.client.post("/reconciliation", json={"headers": ["Material"], "rows": []}, headers=self.staff)
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "MISSING_REQUIRED_COLUMN")

    def test_reconciliation_upload(self):
        self._count(2)
        wb = Workbook()
        wb.active.append(["Material", "Libre utilización"])
        wb.active.append([self.product.truper_code, 5])
        out = BytesIO()
        wb.save(out)

        r = self.client.post("/reconciliation/upload", content=out.getvalue(), headers=self.staff)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["rows"][0]["quantity_variance"], -3)

    def test_reconciliation_upload_rejects_non_xlsx_body(self):
        r = self.client.post("/reconciliation/upload", content=b"not an xlsx", headers=self.staff)
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "INVALID_SPREADSHEET")

    def test_monthly_report_lifecycle(self):
        self._count(6)
        rows = [{"code": "A", "description": "x", "system_quantity": 5, "physical_quantity": 6, "quantity_variance": 1}]

        r = self.client.post("/reports/monthly", json={"rows": rows}, headers=self.staff)
        self.assertEqual(r.status_code, 201)
        snap = r.json()
        self.assertEqual(snap["reset_count"], 1)

        again = self.client.post("/reports/monthly", json={"rows": rows}, headers=self.staff)
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.json()["error"], "DUPLICATE_PERIOD")

        listed = self.client.get("/reports/monthly", headers=self.staff).json()
        self.assertEqual([rep["id"] for rep in listed], [snap["report_id"]])
        detail = self.client.get(f"/reports/monthly/{snap['report_id']}", headers=self.staff).json()
        self.assertEqual(detail["rows"][0]["code"], "A")
        self.assertEqual(self.client.get("/reports/monthly/999999999", headers=self.staff).status_code, 404)
        other_branch = make_branch()
        other = {"X-User": "carol", "X-Role": "staff", "X-Branch-Id": str(other_branch.id)}
        hidden = self.client.get(f"/reports/monthly/{snap['report_id']}", headers=other)
        self.assertEqual(hidden.status_code, 404)
        self.assertEqual(hidden.json()["error"], "REPORT_NOT_FOUND")

        empty = self.client.post("/reports/monthly", json={"rows": []}, headers=self.staff)
        self.assertEqual(empty.status_code, 400)

    def test_admin_metrics_require_admin(self):
        self._count(3)
        self.assertEqual(self.client.get("/admin/metrics", headers=self.staff).status_code, 403)

        admin = {"X-User": "root", "X-Role": "admin"}
        branches = self.client.get("/admin/branches/metrics", headers=admin).json()
        mine = next(b for b in branches if b["branch_id"] == self.branch.id)
        self.assertEqual(mine["total_units"], 3)
        self.assertEqual(mine["low_stock_products"], 1)
        self.assertEqual(mine["stock_percentage"], 100)
        self.assertGreaterEqual(mine["movements_this_month"], 1)

        totals = self.client.get("/admin/metrics", headers=admin).json()
        self.assertGreaterEqual(totals["total_branches"], 1)
        self.assertGreaterEqual(totals["total_units"], 3)


if __name__ == "__main__":
    unittest.main()
