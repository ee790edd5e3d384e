from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(150), nullable=False)
    company = Column(String(150), nullable=False)
    location = Column(String(100), nullable=True)
    employment_type = Column(String(40), nullable=True)  # full-time / contract / ...
    experience_level = Column(String(40), nullable=True)
    salary = Column(String(60), nullable=True)
    skills_json = Column(Text, nullable=True)  # JSON string list
    description = Column(Text, nullable=False)
    explanation = Column(Text, nullable=True)
    # Embedding of `description` only; NULL until ingested
    embedding_json = Column(Text, nullable=True)
    dim = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    applications = relationship("AppliedJob", back_populates="job", cascade="all, delete-orphan")
