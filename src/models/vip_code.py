from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from .base import Base


class VipCodeModel(Base):
    __tablename__ = "vip_codes"
    __table_args__ = (
        CheckConstraint("max_uses > 0", name="ck_vip_codes_max_uses_positive"),
        CheckConstraint("uses_left >= 0", name="ck_vip_codes_uses_left_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_name = Column(
        String,
        ForeignKey("rooms.room_name", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    # Unique across all rooms, not per room
    code = Column(String, unique=True, index=True, nullable=False)
    max_uses = Column(Integer, nullable=False, default=1)
    uses_left = Column(Integer, nullable=False, default=1)
    created_at = Column(String, nullable=False)

    room = relationship("RoomModel", back_populates="vip_codes")
