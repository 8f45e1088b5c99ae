"""Tests for BranchResolver and Principal.effective_branch_id."""

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from stock_count.exceptions import MissingBranchContext
from stock_count.models.identity import Principal
from stock_count.services.branch_resolver import BranchResolver


class TestBranchResolver(unittest.TestCase):
    def test_explicit_branch_wins(self):
        resolver = BranchResolver(lambda: 3)
        self.assertEqual(resolver.resolve(7), 7)

    def test_falls_back_to_provider(self):
        self.assertEqual(BranchResolver(lambda: 3).resolve(), 3)
        self.assertEqual(BranchResolver(lambda: 3).resolve(None), 3)

    def test_no_branch_anywhere_raises(self):
        with self.assertRaises(MissingBranchContext) as ctx:
            BranchResolver(lambda: None).resolve()
        self.assertFalse(ctx.exception.retryable)
        self.assertEqual(ctx.exception.code, "MISSING_BRANCH_CONTEXT")
        with self.assertRaises(MissingBranchContext):
            BranchResolver().resolve(None)

    def test_provider_is_consulted_per_call(self):
        current = {"branch": 1}
        resolver = BranchResolver(lambda: current["branch"])
        self.assertEqual(resolver.resolve(), 1)
        current["branch"] = 2
        self.assertEqual(resolver.resolve(), 2)


class TestPrincipalBranch(unittest.TestCase):
    def test_staff_uses_assigned_branch(self):
        staff = Principal(user="ana", role="staff", branch_id=4, selected_branch_id=9)
        self.assertEqual(BranchResolver(staff.effective_branch_id).resolve(), 4)

    def test_admin_uses_selected_branch(self):
        admin = Principal(user="root", role="admin", selected_branch_id=9)
        self.assertTrue(admin.is_admin)
        self.assertEqual(BranchResolver(admin.effective_branch_id).resolve(), 9)

    def test_admin_without_selection_has_no_branch(self):
        admin = Principal(user="root", role="admin")
        with self.assertRaises(MissingBranchContext):
            BranchResolver(admin.effective_branch_id).resolve()


if __name__ == "__main__":
    unittest.main()
