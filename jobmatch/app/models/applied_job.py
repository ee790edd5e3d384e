from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class AppliedJob(Base):
    __tablename__ = "applied_jobs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False)
    company = Column(String(150), nullable=False)
    job_role = Column(String(150), nullable=False)
    match_percentage = Column(Float, nullable=False, default=0.0)
    status = Column(String(30), nullable=False, default="Applied")
    applied_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="applied_jobs")
    job = relationship("Job", back_populates="applications")

    __table_args__ = (
        UniqueConstraint("user_id", "job_id", name="uq_applied_jobs_user_job"),
    )
