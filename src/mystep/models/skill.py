"""Skill model."""

import enum
from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship
from sqlalchemy.types import JSON

from mystep.clock import utc_now
from mystep.db.base import Base
from mystep.db.types import UTCDateTime

# JSONB for Postgres with JSON fallback
JSONType = JSON().with_variant(JSONB, "postgresql")


class SkillStatus(enum.Enum):
    """Where the user stands on a skill."""

    existing = "existing"
    learning = "learning"
    completed = "completed"
    mastered = "mastered"


class Skill(Base):
    """Named competency inside a learning path."""

    __tablename__ = "skills"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    path_id = Column(
        UUID(as_uuid=True),
        ForeignKey("learning_paths.id", ondelete="CASCADE"),
        nullable=False,
    )
    position = Column(Integer, nullable=False, default=0)
    skill_name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    status = Column(
        Enum(SkillStatus, name="skill_status"),
        nullable=False,
        default=SkillStatus.learning,
    )
    learning_topics = Column(JSONType, nullable=False, default=list)
    progress_percentage = Column(Integer, nullable=False, default=0)
    completed_at = Column(UTCDateTime(), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utc_now)

    # Relationships
    path = relationship("LearningPath", back_populates="skills")
    projects = relationship(
        "Project",
        back_populates="skill",
        cascade="all, delete-orphan",
        order_by="Project.position",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint(
            "progress_percentage >= 0 AND progress_percentage <= 100",
            name="check_skill_progress",
        ),
        Index("idx_skills_path_position", "path_id", "position"),
        Index("idx_skills_name", "skill_name"),
    )
