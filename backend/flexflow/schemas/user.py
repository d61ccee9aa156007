from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from flexflow.models.shared import as_utc


class UserCreate(BaseModel):
    id: str = Field(..., min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    trial_start_date: datetime | None = None
    trial_period_days: int | None = Field(default=None, ge=0)

    @field_validator("trial_start_date")
    @classmethod
    def normalize_to_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)
