# backEnd/app/schemas/token.py
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

class RoleClaim(BaseModel):
    name: Optional[str] = None
    permissions: List[str] = Field(default_factory=list)


class Principal(BaseModel):
    """Usuario autenticado tal como viene en el JWT."""
    sub: str
    email: Optional[str] = None
    is_admin: bool = False
    permissions: List[str] = Field(default_factory=list)
    roles: List[RoleClaim] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    def all_permissions(self) -> set:
        perms = set(self.permissions)
        for role in self.roles:
            perms.update(role.permissions)
        return perms
