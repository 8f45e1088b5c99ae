"""Request dependencies: principal from headers, branch resolver bound to it."""

from typing import Optional

from fastapi import Depends, Header, HTTPException

from stock_count.models.identity import Principal
from stock_count.services.branch_resolver import BranchResolver

ROLES = ("staff", "admin")


def get_principal(
    x_user: Optional[str] = Header(None),
    x_role: Optional[str] = Header(None),
    x_branch_id: Optional[int] = Header(None),
    x_selected_branch_id: Optional[int] = Header(None),
) -> Principal:
    """Build the acting principal from X-User / X-Role / X-Branch-Id / X-Selected-Branch-Id."""
    role = (x_role or "staff").strip().lower()
    if role not in ROLES:
        raise HTTPException(status_code=400, detail=f"Unknown role: {x_role!r}")
    return Principal(
        user=(x_user or "").strip(),
        role=role,
        branch_id=x_branch_id,
        selected_branch_id=x_selected_branch_id,
    )


def get_resolver(principal: Principal = Depends(get_principal)) -> BranchResolver:
    return BranchResolver(principal.effective_branch_id)


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return principal
