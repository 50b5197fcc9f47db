# backend/schemas/pagination.py
from typing import Generic, List, TypeVar
from pydantic import BaseModel, ConfigDict

T = TypeVar('T')

class Pagination(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int = 1
    per_page: int = 10

    model_config = ConfigDict(from_attributes=True)
