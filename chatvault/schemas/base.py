"""
Shared schema configuration

The JSON API speaks camelCase (chatDate, categoryId, ...); Python code
uses snake_case field names. Both spellings are accepted on input.
"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema with camelCase aliases"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
