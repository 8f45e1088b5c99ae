"""DB repositories: sync functions over the catalog tables."""

from stock_count.db.repositories import branch_repo, product_repo

__all__ = ["branch_repo", "product_repo"]
