"""Base model shared by persisted MongoDB documents."""

from datetime import datetime, UTC
from typing import Dict, Any
from pydantic import BaseModel as PydanticBaseModel
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(UTC)


class BaseModel(PydanticBaseModel):
    """Base model for MongoDB documents stored with camelCase keys."""

    class Config:
        """Pydantic config."""
        alias_generator = to_camel
        populate_by_name = True
        use_enum_values = True

    def to_mongo(self) -> Dict[str, Any]:
        """Convert model to MongoDB document."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_mongo(cls, data: Dict[str, Any]):
        """Create model instance from MongoDB document."""
        if not data:
            return None
        data = {key: value for key, value in data.items() if key != "_id"}
        return cls(**data)
