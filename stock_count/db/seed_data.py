"""Seed the catalog (branches, products) from CSV files under data/."""

from typing import Any

from sqlalchemy.orm import Session

from stock_count.db.models.catalog import Branch, Product
from stock_count.utils.csv_loader import load_branches, load_products
from stock_count.utils.logger import get_logger

logger = get_logger("stock_count.db.seed_data")


def _clean(val: Any) -> str | None:
    text = (val or "").strip() if isinstance(val, str) else ("" if val is None else str(val).strip())
    return text or None


def seed_mock_data(session: Session) -> None:
    """Insert branches then products. Rows without a name (branches) or any code (products) are skipped."""
    branch_count = 0
    for r in load_branches():
        name = _clean(r.get("name"))
        if not name:
            continue
        session.add(Branch(name=name, region=_clean(r.get("region"))))
        branch_count += 1
    session.flush()
    if branch_count:
        logger.info("seed_data.branches", count=branch_count)

    seen_codes: set[str] = set()
    product_count = 0
    for r in load_products():
        mrp = _clean(r.get("mrp_code"))
        truper = _clean(r.get("truper_code"))
        if not mrp and not truper:
            continue
        codes = {c for c in (mrp, truper) if c}
        clash = codes & seen_codes
        if clash:
            logger.warning("seed_data.duplicate_code_skipped", codes=sorted(clash))
            continue
        seen_codes |= codes
        session.add(
            Product(
                mrp_code=mrp,
                truper_code=truper,
                brand=_clean(r.get("brand")),
                description=_clean(r.get("description")),
            )
        )
        product_count += 1
    session.flush()
    if product_count:
        logger.info("seed_data.products", count=product_count)
