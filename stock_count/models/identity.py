"""Authenticated principal supplied by the identity/session collaborator."""

from typing import Literal, Optional

from pydantic import BaseModel


class Principal(BaseModel):
    """Acting user plus branch assignment.

    Staff count against their assigned branch. Admins have no fixed branch and
    work against whichever branch they selected, which may be none.
    """

    user: str
    role: Literal["staff", "admin"] = "staff"
    branch_id: Optional[int] = None
    selected_branch_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def effective_branch_id(self) -> Optional[int]:
        if self.is_admin:
            return self.selected_branch_id or self.branch_id
        return self.branch_id
