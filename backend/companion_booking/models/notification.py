from sqlalchemy import JSON, Boolean, Column, String

from companion_booking.db.base import Base, TimestampMixin, new_id


class Notification(Base, TimestampMixin):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(String(1000), nullable=False)
    data = Column(JSON, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Notification(user={self.user_id}, type={self.type})>"
