from pydantic import BaseModel, ConfigDict


class ValueObject(BaseModel):
    """Immutable domain value; accepts both field names and wire aliases."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)
