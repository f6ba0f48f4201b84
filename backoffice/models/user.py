"""
User account model

Accounts are provisioned from the identity provider; passwords never reach
this database.
"""

from sqlalchemy import Column, String, DateTime, Boolean, Enum, ForeignKey

from .base import Base, utcnow
from .enums import Role, values


class User(Base):
    """Broker/admin/staff account"""
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True)  # same id as the identity provider's "sub"
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255))
    role = Column(Enum(*values(Role), name="roles"), default=Role.GUEST.value)

    # Metadata
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    last_login = Column(DateTime)
    is_disabled = Column(Boolean, default=False)

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "user_id": self.user_id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "last_login": self.last_login.isoformat() if self.last_login else None,
            "is_disabled": bool(self.is_disabled),
        }


class NotificationPreference(Base):
    """Per-user opt-ins for the notification emails"""
    __tablename__ = "notification_preferences"

    user_id = Column(String(36), ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True)
    new_inventory_notif = Column(Boolean, default=True)
    new_requirement_notif = Column(Boolean, default=True)
    pending_requirement_notif = Column(Boolean, default=True)

    def to_dict(self):
        return {
            "new_inventory_notif": bool(self.new_inventory_notif),
            "new_requirement_notif": bool(self.new_requirement_notif),
            "pending_requirement_notif": bool(self.pending_requirement_notif),
        }
