from pydantic import BaseModel
from typing import Optional


class Role:
    ANONYMOUS = "anonymous"
    MEMBER = "member"
    MODERATOR = "moderator"


class Caller(BaseModel):
    """Already-authenticated identity attached to a request."""

    id: Optional[str] = None
    role: str = Role.ANONYMOUS

    @property
    def is_anonymous(self) -> bool:
        return self.role == Role.ANONYMOUS or self.id is None


ANONYMOUS = Caller()
