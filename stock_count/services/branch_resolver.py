"""Branch-scoped key resolution.

Every ledger, history and reconciliation call takes an optional explicit branch
id. When it is missing the resolver asks the injected effective-branch provider
(usually ``Principal.effective_branch_id``). There is no default branch: an
unresolvable branch is an error, never a silent fallback.
"""

from collections.abc import Callable
from typing import Optional

from stock_count.exceptions import MissingBranchContext

BranchProvider = Callable[[], Optional[int]]


def _no_branch() -> Optional[int]:
    return None


class BranchResolver:
    def __init__(self, provider: Optional[BranchProvider] = None):
        self._provider = provider or _no_branch

    def resolve(self, explicit_branch_id: Optional[int] = None) -> int:
        """Return the explicit branch id if truthy, else the provider's. Raises MissingBranchContext."""
        if explicit_branch_id:
            return explicit_branch_id
        branch_id = self._provider()
        if not branch_id:
            raise MissingBranchContext()
        return branch_id

    @classmethod
    def fixed(cls, branch_id: Optional[int]) -> "BranchResolver":
        """Resolver whose provider always answers branch_id (may be None)."""
        return cls(lambda: branch_id)
