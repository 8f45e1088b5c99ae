"""Product repository: lookup by scanned code or id, catalog inserts with code uniqueness across namespaces."""

from typing import Optional

from sqlalchemy import or_, select

from stock_count.db import get_session
from stock_count.db.models.catalog import Product
from stock_count.exceptions import DuplicateProductCode


def _detach(session, row: Optional[Product]) -> Optional[Product]:
    if row is not None:
        session.refresh(row)
        session.expunge(row)
    return row


def find_by_code(code: str) -> Optional[Product]:
    """Return the product for a scanned code: Truper code first, then MRP code. None if blank or unknown."""
    code = (code or "").strip()
    if not code:
        return None
    with get_session() as session:
        row = session.scalars(select(Product).where(Product.truper_code == code)).first()
        if row is None:
            row = session.scalars(select(Product).where(Product.mrp_code == code)).first()
        return _detach(session, row)


def get(product_id: int) -> Optional[Product]:
    with get_session() as session:
        return _detach(session, session.get(Product, product_id))


def create(
    mrp_code: Optional[str] = None,
    truper_code: Optional[str] = None,
    brand: Optional[str] = None,
    description: Optional[str] = None,
) -> Product:
    """Insert a product. Raises DuplicateProductCode if either code is already used in either namespace."""
    mrp = (mrp_code or "").strip() or None
    truper = (truper_code or "").strip() or None
    codes = [c for c in (mrp, truper) if c]
    with get_session() as session:
        if codes:
            clash = session.scalars(
                select(Product).where(or_(Product.mrp_code.in_(codes), Product.truper_code.in_(codes)))
            ).first()
            if clash is not None:
                taken = next(c for c in codes if c in clash.codes())
                raise DuplicateProductCode(taken, clash.id)
        row = Product(mrp_code=mrp, truper_code=truper, brand=brand, description=description)
        session.add(row)
        session.flush()
        return _detach(session, row)
