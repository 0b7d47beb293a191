"""Project model."""

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
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from mystep.clock import utc_now
from mystep.db.base import Base
from mystep.db.types import UTCDateTime
from mystep.models.learning_path import ExperienceLevel


class ProjectStatus(enum.Enum):
    """Completion lifecycle of a practice project."""

    not_started = "Not Started"
    in_progress = "In Progress"
    done = "Done"


class Project(Base):
    """Practice project owned by a skill."""

    __tablename__ = "projects"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    skill_id = Column(
        UUID(as_uuid=True),
        ForeignKey("skills.id", ondelete="CASCADE"),
        nullable=False,
    )
    position = Column(Integer, nullable=False, default=0)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    difficulty = Column(
        Enum(ExperienceLevel, name="project_difficulty"),
        nullable=False,
        default=ExperienceLevel.beginner,
    )
    estimated_hours = Column(Integer, nullable=False, default=10)
    status = Column(
        Enum(ProjectStatus, name="project_status"),
        nullable=False,
        default=ProjectStatus.not_started,
    )
    started_at = Column(UTCDateTime(), nullable=True)
    completed_at = Column(UTCDateTime(), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utc_now)

    skill = relationship("Skill", back_populates="projects")

    __table_args__ = (
        CheckConstraint(
            "estimated_hours >= 1 AND estimated_hours <= 200",
            name="check_estimated_hours",
        ),
        Index("idx_projects_skill_position", "skill_id", "position"),
    )
