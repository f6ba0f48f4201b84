from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .enums import DealStage
from ..core.money import check_precision, normalize_amount


class DealCreate(BaseModel):
    requirement_id: str = Field(..., min_length=1)


class DealUpdate(BaseModel):
    """Status change plus any deal details edited alongside it."""

    status: DealStage
    payment_plan: Optional[str] = None
    outstanding_amount: Optional[str] = None
    milestones: Optional[str] = None
    inventory_id: Optional[str] = None
    remarks: Optional[str] = None

    @field_validator("outstanding_amount", mode="before")
    @classmethod
    def normalize_outstanding(cls, value):
        if value is None or (isinstance(value, str) and value.strip() == ""):
            return None
        amount = normalize_amount(value)
        # deals.outstanding_amount is NUMERIC(14, 2)
        check_precision(amount, 14)
        return amount


class InventoryAssignment(BaseModel):
    inventory_id: str = Field(..., min_length=1)
    remarks: Optional[str] = None
