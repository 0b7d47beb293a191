"""SQLAlchemy models for learning path progress tracking."""

from .learning_path import ExperienceLevel, LearningPath
from .project import Project, ProjectStatus
from .skill import Skill, SkillStatus

__all__ = [
    "ExperienceLevel",
    "LearningPath",
    "Project",
    "ProjectStatus",
    "Skill",
    "SkillStatus",
]
