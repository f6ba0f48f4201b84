from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, Text, Enum, ForeignKey

from .base import Base, new_id, utcnow, row_to_dict
from .enums import InventoryStatus, RequirementStatus, RtmOffplan, RequirementCategory, values


# --- 1. SQL Inventory Model (Supply) ---
class SQLInventory(Base):
    __tablename__ = "inventories"

    inventory_id = Column(String(36), primary_key=True, default=new_id)
    broker_id = Column(String(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)

    # Core Fields
    sn = Column(String(50))
    property_type = Column(String(255))
    project_name = Column(String(255))
    description = Column(Text)
    location = Column(String(255))
    developer_name = Column(String(255))
    unit_number = Column(String(20))

    # Room counts
    bed_rooms = Column(Integer, default=0)
    maids_room = Column(Integer, default=0)
    study_room = Column(Integer, default=0)
    car_park = Column(Integer, default=0)

    # Numeric/Price, stored as decimals, never floats
    area_sqft = Column(Numeric(12, 2))
    bua_sqft = Column(Numeric(12, 2))
    selling_price_million_aed = Column(Numeric(14, 2))
    price_aed = Column(Numeric(14, 2))
    inr_cr = Column(Numeric(20, 2))
    rent_approx = Column(Numeric(14, 2))
    roi_gross = Column(Numeric(5, 2))
    markup = Column(Numeric(14, 2))
    brokerage = Column(Numeric(14, 2))

    # Enum Fields
    unit_status = Column(Enum(*values(InventoryStatus), name="inventory_status"), default=InventoryStatus.AVAILABLE.value)

    # String/Boolean
    remarks = Column(Text)
    bayut = Column(Text)
    property_finder = Column(Text)
    phpp_eligible = Column(Boolean, default=False)
    phpp_details = Column(Text)

    completion_date = Column(DateTime)
    date_added = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self):
        return row_to_dict(self)


# --- 2. SQL Requirement Model (Demand) ---
class SQLRequirement(Base):
    __tablename__ = "requirements"

    requirement_id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)

    # Core Fields
    demand = Column(String(255), nullable=False)  # person or entity asking
    preferred_type = Column(String(100), nullable=False)
    preferred_location = Column(String(255), nullable=False)
    budget = Column(String(50), nullable=False)  # free text, e.g. "900000 - 1200000"
    description = Column(Text)
    remarks = Column(Text)

    # Range Fields
    preferred_square_footage = Column(Numeric(12, 2))
    preferred_roi = Column(Numeric(5, 2))

    # Enum Fields
    status = Column(Enum(*values(RequirementStatus), name="requirement_status"), default=RequirementStatus.OPEN.value)
    rtm_offplan = Column(Enum(*values(RtmOffplan), name="rtm_offplan_status"), default=RtmOffplan.NONE.value)
    category = Column(Enum(*values(RequirementCategory), name="requirement_category"))

    # Flags
    phpp = Column(Boolean, default=False)
    shared_with_indian_channel_partner = Column(Boolean, default=False)
    call = Column(Boolean, default=False)
    viewing = Column(Boolean, default=False)

    date_created = Column(DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return row_to_dict(self)
