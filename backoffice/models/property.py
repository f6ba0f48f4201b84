from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import InventoryStatus, RequirementStatus, RtmOffplan, RequirementCategory
from ..core.money import check_precision, normalize_amount, normalize_budget

INVENTORY_MONEY_FIELDS = (
    "area_sqft",
    "bua_sqft",
    "selling_price_million_aed",
    "price_aed",
    "inr_cr",
    "rent_approx",
    "roi_gross",
    "markup",
    "brokerage",
)

REQUIREMENT_MONEY_FIELDS = ("preferred_square_footage", "preferred_roi")

REQUIREMENT_REQUIRED_FIELDS = ("demand", "preferred_type", "preferred_location", "budget")
INVENTORY_REQUIRED_FIELDS = ("project_name", "property_type", "location")

# NUMERIC precision of each money column, scale is always 2
MONEY_PRECISION = {
    "area_sqft": 12,
    "bua_sqft": 12,
    "selling_price_million_aed": 14,
    "price_aed": 14,
    "inr_cr": 20,
    "rent_approx": 14,
    "roi_gross": 5,
    "markup": 14,
    "brokerage": 14,
    "preferred_square_footage": 12,
    "preferred_roi": 5,
}


def _money(value, info):
    """Shared before-validator: blank means unset, shorthand becomes a plain decimal."""
    if value is None:
        return None
    if isinstance(value, str) and value.strip() == "":
        return None
    amount = normalize_amount(value)
    check_precision(amount, MONEY_PRECISION[info.field_name])
    return amount


def _keep(value):
    """Before-validator for fields a partial update may change but never clear."""
    if value is None:
        raise ValueError("cannot be cleared")
    return value


# --- 1. Inventory (Supply) ---

class InventoryFields(BaseModel):
    """Fields an inventory record may carry; ids and timestamps are server-side."""

    sn: Optional[str] = Field(None, max_length=50)
    developer_name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    unit_number: Optional[str] = Field(None, max_length=20)

    bed_rooms: Optional[int] = Field(None, ge=0)
    maids_room: Optional[int] = Field(None, ge=0)
    study_room: Optional[int] = Field(None, ge=0)
    car_park: Optional[int] = Field(None, ge=0)

    # decimal strings after normalization ("1.2M" -> "1200000")
    area_sqft: Optional[str] = None
    bua_sqft: Optional[str] = None
    selling_price_million_aed: Optional[str] = None
    price_aed: Optional[str] = None
    inr_cr: Optional[str] = None
    rent_approx: Optional[str] = None
    roi_gross: Optional[str] = None
    markup: Optional[str] = None
    brokerage: Optional[str] = None

    unit_status: Optional[InventoryStatus] = None
    remarks: Optional[str] = None
    bayut: Optional[str] = None
    property_finder: Optional[str] = None
    phpp_eligible: Optional[bool] = None
    phpp_details: Optional[str] = None
    completion_date: Optional[datetime] = None

    normalize_money = field_validator(*INVENTORY_MONEY_FIELDS, mode="before")(_money)


class InventoryCreate(InventoryFields):
    project_name: str = Field(..., min_length=1, max_length=255)
    property_type: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    unit_status: InventoryStatus = InventoryStatus.AVAILABLE


class InventoryUpdate(InventoryFields):
    """Partial update; only the keys actually sent are applied."""

    project_name: Optional[str] = Field(None, min_length=1, max_length=255)
    property_type: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = Field(None, min_length=1, max_length=255)

    keep_set = field_validator(*INVENTORY_REQUIRED_FIELDS, "unit_status", mode="before")(_keep)


class InventoryStatusUpdate(BaseModel):
    status: InventoryStatus


# --- 2. Requirement (Demand) ---

class RequirementFields(BaseModel):
    description: Optional[str] = None
    budget: Optional[str] = Field(None, max_length=50)
    remarks: Optional[str] = None

    preferred_square_footage: Optional[str] = None
    preferred_roi: Optional[str] = None

    status: Optional[RequirementStatus] = None
    rtm_offplan: Optional[RtmOffplan] = None
    category: Optional[RequirementCategory] = None

    phpp: Optional[bool] = None
    shared_with_indian_channel_partner: Optional[bool] = None
    call: Optional[bool] = None
    viewing: Optional[bool] = None

    normalize_money = field_validator(*REQUIREMENT_MONEY_FIELDS, mode="before")(_money)

    @field_validator("budget", mode="before")
    @classmethod
    def normalize_budget_text(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        return normalize_budget(value) if isinstance(value, str) else value


class RequirementCreate(RequirementFields):
    demand: str = Field(..., min_length=1, max_length=255)
    preferred_type: str = Field(..., min_length=1, max_length=100)
    preferred_location: str = Field(..., min_length=1, max_length=255)
    budget: str = Field(..., min_length=1, max_length=50)
    status: RequirementStatus = RequirementStatus.OPEN
    rtm_offplan: RtmOffplan = RtmOffplan.NONE

    @model_validator(mode="after")
    def default_ranges(self):
        # blank square footage / ROI are stored as zero
        if self.preferred_square_footage is None:
            self.preferred_square_footage = "0"
        if self.preferred_roi is None:
            self.preferred_roi = "0"
        return self


class RequirementUpdate(RequirementFields):
    demand: Optional[str] = Field(None, min_length=1, max_length=255)
    preferred_type: Optional[str] = Field(None, min_length=1, max_length=100)
    preferred_location: Optional[str] = Field(None, min_length=1, max_length=255)
    budget: Optional[str] = Field(None, min_length=1, max_length=50)

    keep_set = field_validator(
        *REQUIREMENT_REQUIRED_FIELDS, "status", "rtm_offplan", "category", mode="before"
    )(_keep)


class RequirementStatusUpdate(BaseModel):
    status: RequirementStatus


class RequirementFlagUpdate(BaseModel):
    value: bool
