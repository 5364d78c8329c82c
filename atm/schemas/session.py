"""
Pydantic schema for the persisted login session.
"""

from pydantic import BaseModel


class SessionIdentity(BaseModel):
    """Identity of the currently logged-in account."""
    id: int
    name: str
