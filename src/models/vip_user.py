from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import Base


class VipUserModel(Base):
    __tablename__ = "vip_users"
    __table_args__ = (
        UniqueConstraint("room_name", "user_name", name="uq_vip_users_room_user"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_name = Column(
        String,
        ForeignKey("rooms.room_name", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    user_name = Column(String, nullable=False)
    added_at = Column(String, nullable=False)

    room = relationship("RoomModel", back_populates="vip_users")
