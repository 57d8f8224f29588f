"""
Document Base Model

Progress documents are stored with camelCase keys. Python code works with
snake_case attributes; the alias generator maps between the two.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    @classmethod
    def from_document(cls, data: dict):
        return cls.model_validate(data)

    def to_document(self) -> dict:
        """JSON-safe dict with camelCase keys and ISO-8601 timestamps"""
        return self.model_dump(mode='json', by_alias=True)
