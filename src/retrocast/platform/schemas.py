"""Base Pydantic model for wire schemas.

Python attributes stay snake_case; JSON payloads use camelCase. Either form
is accepted on input.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
