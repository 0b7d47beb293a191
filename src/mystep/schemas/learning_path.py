"""Pydantic schemas for learning paths, skills and projects.

Request models accept both the snake_case field names and the camelCase keys
sent by the web client (``jobTitle``, ``skillName``, ``estimatedHours`` ...).
"""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from mystep.models import ExperienceLevel, ProjectStatus, SkillStatus


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if isinstance(value, str) else value


class SkillSeed(BaseModel):
    """Initial skill entry; a bare string is taken as the skill name."""

    skill_name: str = Field(validation_alias=AliasChoices("skill_name", "skillName"))
    category: Optional[str] = None
    learning_topics: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("learning_topics", "learningTopics"),
    )

    @model_validator(mode="before")
    @classmethod
    def _from_name(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"skill_name": data}
        return data

    @field_validator("skill_name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Skill name is required")
        return value

    @field_validator("learning_topics")
    @classmethod
    def _clean_topics(cls, value: List[str]) -> List[str]:
        return [t.strip() for t in value if t and t.strip()]


class LearningPathCreate(BaseModel):
    """Create learning path request."""

    job_title: str = Field(validation_alias=AliasChoices("job_title", "jobTitle"))
    target_role: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("target_role", "targetRole")
    )
    experience: ExperienceLevel
    existing_skills: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("existing_skills", "existingSkills"),
    )
    skills: List[SkillSeed] = Field(default_factory=list)
    estimated_completion_time: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "estimated_completion_time", "estimatedCompletionTime"
        ),
    )
    api_response: Optional[Any] = Field(
        default=None, validation_alias=AliasChoices("api_response", "apiResponse")
    )

    @field_validator("job_title")
    @classmethod
    def _job_title_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Job title is required")
        return value

    @field_validator("target_role", "estimated_completion_time")
    @classmethod
    def _strip_optional(cls, value: Optional[str]) -> Optional[str]:
        return _strip(value) or None

    @field_validator("existing_skills")
    @classmethod
    def _clean_existing(cls, value: List[str]) -> List[str]:
        return [s.strip() for s in value if s and s.strip()]

    @model_validator(mode="after")
    def _unique_skill_names(self) -> "LearningPathCreate":
        seen = set()
        for seed in self.skills:
            key = seed.skill_name.casefold()
            if key in seen:
                raise ValueError(f"Duplicate skill: {seed.skill_name}")
            seen.add(key)
        return self


class ProjectCreate(BaseModel):
    """Project entry for assignment to a skill."""

    title: str
    description: str = ""
    difficulty: ExperienceLevel = ExperienceLevel.beginner
    estimated_hours: Optional[int] = Field(
        default=None,
        ge=1,
        le=200,
        validation_alias=AliasChoices("estimated_hours", "estimatedHours"),
    )

    @field_validator("title")
    @classmethod
    def _title_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Project title is required")
        return value

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, value: Optional[str]) -> str:
        return _strip(value) or ""


class ProjectAssign(BaseModel):
    """Replace the project set of a skill."""

    projects: List[ProjectCreate]


class ProjectStatusUpdate(BaseModel):
    """Set a project's status."""

    status: ProjectStatus


class Project(BaseModel):
    """Project representation."""

    id: UUID
    title: str
    description: str
    difficulty: ExperienceLevel
    estimated_hours: int
    status: ProjectStatus
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Skill(BaseModel):
    """Skill representation with its projects."""

    id: UUID
    skill_name: str
    category: Optional[str] = None
    status: SkillStatus
    learning_topics: List[str]
    projects: List[Project]
    progress_percentage: int
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LearningPath(BaseModel):
    """Learning path representation."""

    id: UUID
    user_id: str
    job_title: str
    target_role: Optional[str] = None
    experience: ExperienceLevel
    existing_skills: List[str]
    skills: List[Skill]
    overall_progress: int
    estimated_completion_time: Optional[str] = None
    is_active: bool
    completed_at: Optional[datetime] = None
    api_response: Optional[Any] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LearningPathSummary(BaseModel):
    """Learning path without its skill tree, for history listings."""

    id: UUID
    job_title: str
    target_role: Optional[str] = None
    experience: ExperienceLevel
    overall_progress: int
    is_active: bool
    completed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class LearningPathList(BaseModel):
    """List of learning paths."""

    items: List[LearningPathSummary]


class SkillProgressResponse(BaseModel):
    """Skill after a project assignment, with recomputed progress."""

    skill: Skill
    skill_progress: int
    overall_progress: int


class ProjectProgressResponse(BaseModel):
    """Project after a status change, with recomputed progress.

    ``applied`` is false when the requested transition did not apply
    (already started, already done).
    """

    project: Project
    skill_progress: int
    overall_progress: int
    applied: bool = True


class LearningStats(BaseModel):
    """Counts across the active learning path."""

    total_skills: int = 0
    completed_skills: int = 0
    total_projects: int = 0
    completed_projects: int = 0
    overall_progress: int = 0
    existing_skills: int = 0
    estimated_completion_time: Optional[str] = None
