"""Base class for every persisted entity: identity + store timestamps."""
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def new_id() -> str:
    return uuid4().hex


class Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_id, alias="_id")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        '''Builds the entity from a store document (validates every field).'''
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        '''JSON-shaped document: "_id" identity, ISO dates, enum values.'''
        return self.model_dump(mode="json", by_alias=True)
