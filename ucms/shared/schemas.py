from typing import Any, List

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class MessageResponse(BaseModel):
    message: str


class PageResponse(CamelModel):
    content: List[Any]
    total_elements: int
    total_pages: int
    size: int
    number: int
    number_of_elements: int
    first: bool
    last: bool
    empty: bool
