"""Progress computation for projects, skills and learning paths.

The arithmetic (``percent_done``, ``mean_progress``, ``derive_skill_status``)
is pure. The ``apply_*``/``refresh_*`` helpers write derived values and
timestamps onto model instances and take ``now`` from the caller, so nothing
here reads the wall clock.

Rounding is half-up on exact integers: 12.5 -> 13, 66.67 -> 67.
"""

from datetime import datetime
from typing import Iterable, Optional

import structlog

from mystep.clock import as_utc
from mystep.models import LearningPath, Project, ProjectStatus, Skill, SkillStatus

logger = structlog.get_logger()


def percent_done(done: int, total: int) -> int:
    """Return ``round(100 * done / total)``, or 0 when there is nothing to do."""
    if total <= 0:
        return 0
    return (200 * done + total) // (2 * total)


def mean_progress(values: Iterable[int]) -> int:
    """Rounded arithmetic mean of percentages; 0 for an empty input."""
    items = list(values)
    if not items:
        return 0
    return (2 * sum(items) + len(items)) // (2 * len(items))


def derive_skill_status(current: SkillStatus, percentage: int) -> SkillStatus:
    """Skill status implied by a progress percentage.

    Zero progress keeps whatever status the skill already had.
    """
    if percentage >= 100:
        return SkillStatus.completed
    if percentage > 0:
        return SkillStatus.learning
    return current


def _latest(existing: Optional[datetime], now: datetime) -> datetime:
    existing = as_utc(existing)
    now = as_utc(now)
    if existing is not None and existing > now:
        return existing
    return now


def apply_project_status(
    project: Project, status: ProjectStatus, now: datetime
) -> bool:
    """Write ``status`` onto a project and stamp its timestamps.

    Moving to in-progress stamps ``started_at`` once. Moving to done stamps
    ``completed_at`` (kept as-is when the project was already done) and
    backfills ``started_at``. Nothing is cleared on the way back to
    not-started. Returns whether any field changed.
    """
    before = (project.status, project.started_at, project.completed_at)
    was_done = project.status is ProjectStatus.done

    project.status = status
    if status is ProjectStatus.in_progress:
        if project.started_at is None:
            project.started_at = now
    elif status is ProjectStatus.done:
        if not was_done or project.completed_at is None:
            project.completed_at = _latest(project.completed_at, now)
        if project.started_at is None:
            project.started_at = project.completed_at

    return (project.status, project.started_at, project.completed_at) != before


def refresh_skill(path: LearningPath, skill: Skill, now: datetime) -> int:
    """Recompute a skill's progress and status, then the owning path's."""
    projects = list(skill.projects)
    done = sum(1 for p in projects if p.status is ProjectStatus.done)
    percentage = percent_done(done, len(projects))

    previous_status = skill.status
    skill.progress_percentage = percentage
    skill.status = derive_skill_status(previous_status, percentage)

    if skill.status is SkillStatus.completed and (
        previous_status is not SkillStatus.completed or skill.completed_at is None
    ):
        skill.completed_at = _latest(skill.completed_at, now)
        logger.info(
            "skill_completed",
            path_id=str(path.id),
            skill_id=str(skill.id),
            skill_name=skill.skill_name,
        )

    refresh_path(path, now)
    return percentage


def refresh_path(path: LearningPath, now: datetime) -> int:
    """Recompute overall progress from the current skill percentages.

    The path's own ``completed_at`` is stamped the first time overall
    progress reaches 100.
    """
    path.overall_progress = mean_progress(
        s.progress_percentage or 0 for s in path.skills
    )
    if path.overall_progress == 100 and path.completed_at is None:
        path.completed_at = now
    return path.overall_progress
