import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship

from shortlink_app.clock import utcnow
from shortlink_app.database.connection import Base


def new_id() -> str:
    return str(uuid.uuid4())


class Link(Base):
    """
    Short link record.

    short_code is unique at the database level. The constraint is the final
    arbiter when two writers race for the same code; an expired row keeps its
    code until an allocation overwrites it in place.
    """
    __tablename__ = "links"

    id = Column(String(36), primary_key=True, default=new_id)
    target_url = Column(String, nullable=False)
    # Note: unique=True automatically creates an index
    short_code = Column(String(32), unique=True, nullable=False, index=True)
    owner_id = Column(String(64), nullable=True, index=True)
    expires_at = Column(DateTime, nullable=True, index=True)  # NULL = never expires
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    clicks = relationship(
        "ClickEvent",
        back_populates="link",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def is_expired(self, now=None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or utcnow())

    def __repr__(self):
        return f"<Link {self.short_code} -> {self.target_url}>"
