"""Branch repository: create, get, list."""

from typing import Optional

from sqlalchemy import select

from stock_count.db import get_session
from stock_count.db.models.catalog import Branch


def create(name: str, region: Optional[str] = None) -> Branch:
    with get_session() as session:
        row = Branch(name=name.strip(), region=(region or "").strip() or None)
        session.add(row)
        session.flush()
        session.refresh(row)
        session.expunge(row)
        return row


def get(branch_id: int) -> Optional[Branch]:
    with get_session() as session:
        row = session.get(Branch, branch_id)
        if row is not None:
            session.expunge(row)
        return row


def list_all() -> list[Branch]:
    """All branches ordered by name."""
    with get_session() as session:
        rows = list(session.scalars(select(Branch).order_by(Branch.name)).all())
        for row in rows:
            session.expunge(row)
        return rows
