from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EmailEntry(BaseModel):
    value: str


class UserResponse(BaseModel):
    """Identity as the frontend expects it: ``{displayName, emails: [{value}]}``."""

    display_name: str
    emails: List[EmailEntry] = Field(default_factory=list)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
