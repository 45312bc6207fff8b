"""Price alert data models"""

from pydantic import Field, field_validator, model_validator
from enum import Enum
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from .base import CamelModel


class AlertObjectiveType(str, Enum):
    """Kinds of price objective an alert can watch"""
    PRICE_BELOW = "price_below"
    PRICE_RANGE = "price_range"
    PRICE_DROP_PERCENT = "price_drop_percent"


class PriceBelowObjective(CamelModel):
    type: Literal["price_below"] = "price_below"
    target_price: float = Field(gt=0)


class PriceRangeObjective(CamelModel):
    type: Literal["price_range"] = "price_range"
    min_price: float = Field(ge=0)
    max_price: float = Field(gt=0)

    @model_validator(mode="after")
    def check_bounds(self) -> "PriceRangeObjective":
        if self.min_price > self.max_price:
            raise ValueError("min_price must not exceed max_price")
        return self


class PriceDropObjective(CamelModel):
    type: Literal["price_drop_percent"] = "price_drop_percent"
    drop_percent: float = Field(gt=0, le=100)


AlertObjective = Annotated[
    Union[PriceBelowObjective, PriceRangeObjective, PriceDropObjective],
    Field(discriminator="type"),
]


class AlertCreate(CamelModel):
    """Model for creating a price alert"""
    job_id: Optional[str] = None
    query: str = Field(min_length=1)
    country: str = "us"
    objective: AlertObjective

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query must not be empty")
        return v.strip()

    @field_validator("country")
    @classmethod
    def normalize_country(cls, v: str) -> str:
        return v.strip().lower() or "us"


class AlertUpdate(CamelModel):
    """Model for toggling an alert"""
    is_active: bool


class Alert(CamelModel):
    """Complete alert model"""
    id: int
    user_id: int
    job_id: Optional[str] = None
    query: str
    country: str
    objective_type: AlertObjectiveType
    target_price: Optional[float] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    drop_percent: Optional[float] = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class AlertList(CamelModel):
    alerts: List[Alert] = Field(default_factory=list)
