from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class Embedding(Base):
    """One immutable vector per upload. Readers pick the newest row per (subject_id, field)."""

    __tablename__ = "embeddings"

    id = Column(Integer, primary_key=True, index=True)
    subject_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    field = Column(String(40), nullable=False, default="resume")
    original_filename = Column(String(255), nullable=True)
    model = Column(String(120), nullable=True)
    dim = Column(Integer, nullable=False, default=0)
    source_text = Column(Text, nullable=False)  # exact text that was embedded
    vector_json = Column(Text, nullable=False)  # JSON array of floats, unit length
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    subject = relationship("User", back_populates="embeddings")

    __table_args__ = (
        Index("ix_embeddings_subject_field", "subject_id", "field"),
    )
