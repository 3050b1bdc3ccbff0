"""
Analytics events and admin audit trail
"""
from sqlalchemy import Column, String, ForeignKey, JSON

from pricemyfloor.database.models.base import BaseModel


class AnalyticsEvent(BaseModel):
    """Security and funnel events"""
    __tablename__ = "analytics_events"

    event_name = Column(String(100), nullable=False, index=True)
    event_category = Column(String(50), nullable=False)
    event_data = Column(JSON, default=dict, nullable=False)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)


class AdminAction(BaseModel):
    """One write performed from the admin dashboard"""
    __tablename__ = "admin_actions"

    admin_user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    action_type = Column(String(50), nullable=False)
    target_retailer_id = Column(String(36), ForeignKey("retailers.id"), nullable=True)
    details = Column(JSON, default=dict, nullable=False)
    ip_address = Column(String(64), nullable=True)
