"""
Chat message. Only written while the chat window is reachable.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Index, String

from companion_booking.db.base import Base, TimestampMixin, new_id


class Message(Base, TimestampMixin):
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=new_id)
    chat_id = Column(String(36), ForeignKey("chats.id"), nullable=False)
    sender_id = Column(String(36), nullable=False)
    content = Column(String(2000), nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        CheckConstraint("length(content) > 0", name="check_message_not_empty"),
        Index("ix_messages_chat_created_at", "chat_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Message(chat={self.chat_id}, sender={self.sender_id})>"
