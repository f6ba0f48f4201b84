from sqlalchemy import Column, String, Numeric, DateTime, Text, Enum, ForeignKey

from .base import Base, new_id, utcnow, row_to_dict
from .enums import DealStage, values


class SQLDeal(Base):
    __tablename__ = "deals"

    deal_id = Column(String(36), primary_key=True, default=new_id)
    requirement_id = Column(String(36), ForeignKey("requirements.requirement_id", ondelete="CASCADE"))
    status = Column(Enum(*values(DealStage), name="deal_stages"), default=DealStage.OPEN.value)

    payment_plan = Column(Text)
    outstanding_amount = Column(Numeric(14, 2))
    milestones = Column(Text)
    # the unit the deal finally settled on
    inventory_id = Column(String(36), ForeignKey("inventories.inventory_id", ondelete="SET NULL"))
    remarks = Column(Text)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self):
        return row_to_dict(self)


# Shortlist of units proposed for a deal
class SQLInventoryAssignedDeal(Base):
    __tablename__ = "inventory_assigned_deals"

    id = Column(String(36), primary_key=True, default=new_id)
    deal_id = Column(String(36), ForeignKey("deals.deal_id", ondelete="CASCADE"))
    inventory_id = Column(String(36), ForeignKey("inventories.inventory_id", ondelete="CASCADE"))
    remarks = Column(Text)

    def to_dict(self):
        return row_to_dict(self)
