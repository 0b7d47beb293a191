"""Learning path model."""

import enum
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Enum,
    Index,
    Integer,
    String,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship
from sqlalchemy.types import JSON

from mystep.clock import utc_now
from mystep.db.base import Base
from mystep.db.types import UTCDateTime

# JSONB for Postgres with JSON fallback
JSONType = JSON().with_variant(JSONB, "postgresql")


class ExperienceLevel(enum.Enum):
    """Experience band, shared by paths and project difficulty."""

    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"


class LearningPath(Base):
    """A user's skill-acquisition plan; root of the skill/project aggregate."""

    __tablename__ = "learning_paths"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(String(255), nullable=False)
    job_title = Column(String(255), nullable=False)
    target_role = Column(String(255), nullable=True)
    experience = Column(
        Enum(ExperienceLevel, name="experience_level"), nullable=False
    )
    existing_skills = Column(JSONType, nullable=False, default=list)
    overall_progress = Column(Integer, nullable=False, default=0)
    estimated_completion_time = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    completed_at = Column(UTCDateTime(), nullable=True)
    # Upstream generation payload, stored verbatim
    api_response = Column(JSONType, nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(UTCDateTime(), nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime(), nullable=False, default=utc_now)

    # Relationships
    skills = relationship(
        "Skill",
        back_populates="path",
        cascade="all, delete-orphan",
        order_by="Skill.position",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint(
            "overall_progress >= 0 AND overall_progress <= 100",
            name="check_overall_progress",
        ),
        Index("idx_learning_paths_user", "user_id", "created_at"),
        # At most one active path per user
        Index(
            "uq_learning_paths_active_user",
            "user_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )
