"""Room database model.

This module defines the Room database model using SQLAlchemy.
"""

from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship

from .base import Base


class RoomModel(Base):
    """Room database model."""

    __tablename__ = "rooms"

    room_name = Column(String, primary_key=True, index=True)
    owner_password = Column(String, nullable=True)  # NULL = unclaimed
    privacy = Column(String, nullable=False, default="public", server_default="public")
    is_live = Column(Boolean, nullable=False, default=False, server_default="0")
    vip_required = Column(Boolean, nullable=False, default=False, server_default="0")
    created_at = Column(String, nullable=False)  # ISO format string
    title = Column(String, nullable=True)
    viewers = Column(Integer, nullable=False, default=0, server_default="0")

    payment_enabled = Column(Boolean, nullable=False, default=False, server_default="0")
    payment_label = Column(String, nullable=False, default="", server_default="")
    payment_url = Column(String, nullable=False, default="", server_default="")

    relay_enabled = Column(Boolean, nullable=False, default=False, server_default="0")
    relay_host = Column(String, nullable=False, default="", server_default="")
    relay_port = Column(Integer, nullable=True)
    relay_tls_port = Column(Integer, nullable=True)
    relay_username = Column(String, nullable=False, default="", server_default="")
    relay_password = Column(String, nullable=False, default="", server_default="")

    # Bumped by every update; writes are conditional on the version read
    version = Column(Integer, nullable=False, default=0, server_default="0")

    vip_codes = relationship(
        "VipCodeModel",
        back_populates="room",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    vip_users = relationship(
        "VipUserModel",
        back_populates="room",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
