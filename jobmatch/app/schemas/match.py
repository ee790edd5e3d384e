from pydantic import BaseModel, Field, field_validator


class MatchResult(BaseModel):
    """One ranked posting. Not persisted."""

    job_id: int
    job_title: str = ""
    company: str = ""
    location: str | None = None
    employment_type: str | None = None
    experience_level: str | None = None
    salary: str | None = None
    skills: list[str] = Field(default_factory=list)
    description: str = ""
    explanation: str | None = None
    # Boosted score, unrounded, always within [0, 1]
    similarity_score: float = 0.0
    # similarity_score * 100, 2 decimals, for display
    match_percentage: float = 0.0
    exact_skill_matches: int = 0

    @field_validator("similarity_score")
    @classmethod
    def _clamp_score(cls, v: float) -> float:
        if v < 0.0:
            return 0.0
        if v > 1.0:
            return 1.0
        return float(v)


class RecommendationMetadata(BaseModel):
    subject_id: int
    resume_embedding_id: int
    total_candidates_considered: int
    skipped_candidates: int = 0
    embedding_dimension: int
    requested_limit: int
    algorithm: str = "cosine_similarity"
    scoring_method: str = "normalized_embeddings_with_skill_boost"
    match_score_range: str = "0-100%"
    timestamp: str


class RecommendationResponse(BaseModel):
    success: bool = True
    count: int
    recommendations: list[MatchResult] = Field(default_factory=list)
    metadata: RecommendationMetadata
