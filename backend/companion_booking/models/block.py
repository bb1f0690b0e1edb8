"""
Block between two profiles. One row per (blocker, blocked) pair.
"""

from sqlalchemy import Column, String, UniqueConstraint

from companion_booking.db.base import Base, TimestampMixin, new_id


class Block(Base, TimestampMixin):
    __tablename__ = "blocks"

    id = Column(String(36), primary_key=True, default=new_id)
    blocker_id = Column(String(36), nullable=False, index=True)
    blocked_id = Column(String(36), nullable=False, index=True)
    reason = Column(String(500), nullable=True)

    __table_args__ = (
        UniqueConstraint("blocker_id", "blocked_id", name="uq_block_pair"),
    )

    def __repr__(self) -> str:
        return f"<Block(blocker={self.blocker_id}, blocked={self.blocked_id})>"
