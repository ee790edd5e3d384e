from .applied_job import AppliedJob
from .embedding import Embedding
from .job import Job
from .user import User

__all__ = ["AppliedJob", "Embedding", "Job", "User"]
