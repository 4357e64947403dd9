from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Subject(BaseModel):
    """Authenticated principal handed to the permission engine by the web layer."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: Any = Field(default=None, alias="_id")
    role: str = Field(..., min_length=1, max_length=100)
    museum_id: Any | None = Field(default=None, alias="museumId")


class Target(BaseModel):
    """Entity an action applies to. Unknown fields are kept."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    id: Any = Field(default=None, alias="_id")
    museum: Any | None = None
    admin: Any | None = None
    owner: Any | None = None
    status: str | None = None
