"""Schema baselines: strict requests, ORM-backed responses."""

from pydantic import BaseModel, ConfigDict


class StrictRequestModel(BaseModel):
    """Request DTO base that forbids unexpected fields."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class ORMResponseModel(BaseModel):
    """Response DTO built from SQLAlchemy rows."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)
