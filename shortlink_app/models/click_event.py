from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from shortlink_app.clock import utcnow
from shortlink_app.database.connection import Base
from shortlink_app.models.link import new_id


class ClickEvent(Base):
    """
    One visit to a short link. Insert-only.

    Rows are never updated; they go away only when their link is deleted.
    """
    __tablename__ = "click_events"

    id = Column(String(36), primary_key=True, default=new_id)
    link_id = Column(
        String(36),
        ForeignKey("links.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    occurred_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    user_agent = Column(String(512), nullable=True)
    address = Column(String(45), nullable=True)  # IPv4 or IPv6
    created_at = Column(DateTime, nullable=False, default=utcnow)

    link = relationship("Link", back_populates="clicks")

    def __repr__(self):
        return f"<ClickEvent {self.id} for link {self.link_id}>"
