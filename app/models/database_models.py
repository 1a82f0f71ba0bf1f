"""
SQLAlchemy ORM models for the Pagecraft database.
"""
from sqlalchemy import (
    Column,
    String,
    DateTime,
    Boolean,
    JSON,
)
from sqlalchemy.sql import func

from app.database import Base


class Page(Base):
    """A processed document stored for later preview and deployment."""

    __tablename__ = "pages"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(255), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    template_id = Column(String(100), nullable=False)

    # JSON payloads, all in the API's camelCase shape
    document_content = Column(JSON, nullable=False)   # {document, content}
    template_config = Column(JSON, nullable=False)
    features = Column(JSON, nullable=False, default=dict)
    enabled_sections = Column(JSON, nullable=False, default=dict)
    sections = Column(JSON, nullable=False, default=dict)  # sectionKey -> mapped content
    navigation = Column(JSON, nullable=False, default=list)

    deployed = Column(Boolean, nullable=False, default=False)
    deployed_url = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self):
        return f"<Page(id={self.id}, title='{self.title}', user={self.user_id})>"
