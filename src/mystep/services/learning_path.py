"""Learning path service layer.

Every mutation is one read-modify-write of a single learning path: load the
path with its skills and projects, change it, recompute the derived progress
and commit. ``LearningPath.version`` turns a lost race into
``ConcurrentModification`` instead of a silent overwrite.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional
from uuid import UUID

import structlog
from redis import asyncio as aioredis
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from mystep.clock import Clock, utc_now
from mystep.config import get_settings
from mystep.errors import ConcurrentModification, NotFound
from mystep.models import (
    LearningPath,
    Project,
    ProjectStatus,
    Skill,
    SkillStatus,
)
from mystep.schemas.learning_path import (
    LearningPathCreate,
    LearningStats,
    ProjectCreate,
)
from mystep.services.progress import apply_project_status, refresh_skill

logger = structlog.get_logger()


@dataclass
class SkillProgress:
    """A skill after a mutation, with the recomputed figures."""

    path: LearningPath
    skill: Skill

    @property
    def skill_progress(self) -> int:
        return self.skill.progress_percentage

    @property
    def overall_progress(self) -> int:
        return self.path.overall_progress


@dataclass
class ProjectProgress(SkillProgress):
    """A project after a status change.

    ``applied`` is False when the call was a no-op because the project was
    already in the requested state.
    """

    project: Project
    applied: bool = True


class LearningPathService:
    """Service for managing learning paths and their progress."""

    def __init__(
        self,
        db: AsyncSession,
        redis: Optional[aioredis.Redis] = None,
        clock: Clock = utc_now,
    ):
        self.db = db
        self.settings = get_settings()
        self.clock = clock
        self._redis = redis

    async def _get_redis(self) -> aioredis.Redis:
        if not self._redis:
            self._redis = aioredis.from_url(self.settings.redis_url)
        return self._redis

    def _cache_key(self, user_id: str) -> str:
        return f"learning_path:active:{user_id}"

    async def _remember_active(self, user_id: str, path_id: UUID) -> None:
        redis = await self._get_redis()
        await redis.set(
            self._cache_key(user_id),
            str(path_id),
            ex=self.settings.active_path_cache_ttl,
        )

    async def _forget_active(self, user_id: str) -> None:
        redis = await self._get_redis()
        await redis.delete(self._cache_key(user_id))

    async def _flush(self) -> None:
        try:
            await self.db.flush()
        except (StaleDataError, IntegrityError) as exc:
            await self.db.rollback()
            raise ConcurrentModification(
                "Learning path was modified concurrently, retry the request"
            ) from exc

    async def _commit(self) -> None:
        await self._flush()
        await self.db.commit()

    # Plan lifecycle

    async def create_learning_path(
        self, user_id: str, data: LearningPathCreate
    ) -> LearningPath:
        """Deactivate the user's paths and insert a new active one.

        Both steps commit together, so no reader sees two active paths.
        """
        now = self.clock()

        # Deactivation reaches the database before the new row exists
        await self._deactivate_all(user_id, now)
        await self._flush()

        path = LearningPath(
            user_id=user_id,
            job_title=data.job_title,
            target_role=data.target_role,
            experience=data.experience,
            existing_skills=list(data.existing_skills),
            skills=[
                Skill(
                    position=index,
                    skill_name=seed.skill_name,
                    category=seed.category,
                    learning_topics=list(seed.learning_topics),
                    status=SkillStatus.learning,
                    progress_percentage=0,
                    projects=[],
                )
                for index, seed in enumerate(data.skills)
            ],
            overall_progress=0,
            estimated_completion_time=data.estimated_completion_time,
            is_active=True,
            api_response=data.api_response,
            created_at=now,
            updated_at=now,
        )
        self.db.add(path)
        await self._commit()

        await self._remember_active(user_id, path.id)
        logger.info(
            "learning_path_created",
            user_id=user_id,
            path_id=str(path.id),
            skills=len(path.skills),
        )
        return path

    async def get_active_path(self, user_id: str) -> Optional[LearningPath]:
        """Get the user's active path, using the cached id when it still holds."""
        redis = await self._get_redis()
        cached = await redis.get(self._cache_key(user_id))
        if cached:
            raw = cached.decode() if isinstance(cached, bytes) else cached
            try:
                path = await self._load(user_id, UUID(raw))
            except ValueError:
                path = None
            if path and path.is_active:
                return path

        result = await self.db.execute(
            select(LearningPath)
            .where(
                LearningPath.user_id == user_id,
                LearningPath.is_active.is_(True),
            )
            .order_by(LearningPath.created_at.desc())
            .limit(1)
        )
        path = result.scalar_one_or_none()
        if path:
            await self._remember_active(user_id, path.id)
        elif cached:
            await self._forget_active(user_id)
        return path

    async def require_active_path(self, user_id: str) -> LearningPath:
        """Like ``get_active_path`` but raises ``NotFound`` when there is none."""
        path = await self.get_active_path(user_id)
        if not path:
            raise NotFound("No active learning path found")
        return path

    async def get_path(self, user_id: str, path_id: UUID) -> LearningPath:
        """Get one of the user's paths, active or not."""
        path = await self._load(user_id, path_id)
        if not path:
            raise NotFound("Learning path not found")
        return path

    async def list_paths(self, user_id: str) -> List[LearningPath]:
        """All of the user's paths, newest first."""
        result = await self.db.execute(
            select(LearningPath)
            .where(LearningPath.user_id == user_id)
            .order_by(LearningPath.created_at.desc())
        )
        return list(result.scalars().all())

    async def deactivate_active_path(self, user_id: str) -> int:
        """Deactivate the user's active path. Returns how many were deactivated."""
        count = await self._deactivate_all(user_id, self.clock())
        await self._commit()
        await self._forget_active(user_id)

        logger.info("learning_path_deactivated", user_id=user_id, count=count)
        return count

    # Skills and projects

    async def assign_projects(
        self,
        user_id: str,
        path_id: UUID,
        skill_id: UUID,
        projects: List[ProjectCreate],
    ) -> SkillProgress:
        """Replace a skill's projects with a fresh, not-started set.

        Prior projects and their progress are discarded, not merged.
        """
        path = await self._load_active(user_id, path_id)
        skill = self._find_skill(path, skill_id)
        now = self.clock()

        skill.projects = [
            Project(
                position=index,
                title=data.title,
                description=data.description,
                difficulty=data.difficulty,
                estimated_hours=data.estimated_hours
                or self.settings.default_project_hours,
                status=ProjectStatus.not_started,
            )
            for index, data in enumerate(projects)
        ]
        refresh_skill(path, skill, now)
        path.updated_at = now
        await self._commit()

        logger.info(
            "projects_assigned",
            user_id=user_id,
            path_id=str(path.id),
            skill_id=str(skill.id),
            projects=len(skill.projects),
        )
        return SkillProgress(path=path, skill=skill)

    async def set_project_status(
        self,
        user_id: str,
        path_id: UUID,
        skill_id: UUID,
        project_id: UUID,
        status: ProjectStatus,
    ) -> ProjectProgress:
        """Set a project's status and recompute skill and path progress."""
        return await self._transition(
            user_id, path_id, skill_id, project_id, status, lambda p: True
        )

    async def start_project(
        self, user_id: str, path_id: UUID, skill_id: UUID, project_id: UUID
    ) -> ProjectProgress:
        """Move a not-started project to in-progress."""
        return await self._transition(
            user_id,
            path_id,
            skill_id,
            project_id,
            ProjectStatus.in_progress,
            lambda p: p.status is ProjectStatus.not_started,
        )

    async def complete_project(
        self, user_id: str, path_id: UUID, skill_id: UUID, project_id: UUID
    ) -> ProjectProgress:
        """Mark a project done unless it already is."""
        return await self._transition(
            user_id,
            path_id,
            skill_id,
            project_id,
            ProjectStatus.done,
            lambda p: p.status is not ProjectStatus.done,
        )

    async def find_skill_by_name(
        self, user_id: str, path_id: UUID, name: str
    ) -> Skill:
        """Case-insensitive exact match on skill name."""
        path = await self._load_active(user_id, path_id)
        wanted = name.casefold()
        for skill in path.skills:
            if skill.skill_name.casefold() == wanted:
                return skill
        raise NotFound("Skill not found", {"skill_name": name})

    async def get_stats(self, user_id: str) -> LearningStats:
        """Skill and project counts for the active path; zeros without one."""
        path = await self.get_active_path(user_id)
        if not path:
            return LearningStats()

        projects = [p for s in path.skills for p in s.projects]
        return LearningStats(
            total_skills=len(path.skills),
            completed_skills=sum(
                1
                for s in path.skills
                if s.status in (SkillStatus.completed, SkillStatus.mastered)
            ),
            total_projects=len(projects),
            completed_projects=sum(
                1 for p in projects if p.status is ProjectStatus.done
            ),
            overall_progress=path.overall_progress,
            existing_skills=len(path.existing_skills or []),
            estimated_completion_time=path.estimated_completion_time,
        )

    # Internals

    async def _transition(
        self,
        user_id: str,
        path_id: UUID,
        skill_id: UUID,
        project_id: UUID,
        status: ProjectStatus,
        applies: Callable[[Project], bool],
    ) -> ProjectProgress:
        path = await self._load_active(user_id, path_id)
        skill = self._find_skill(path, skill_id)
        project = self._find_project(skill, project_id)

        if not applies(project):
            return ProjectProgress(
                path=path, skill=skill, project=project, applied=False
            )

        now = self.clock()
        changed = apply_project_status(project, status, now)
        refresh_skill(path, skill, now)
        path.updated_at = now
        await self._commit()

        logger.info(
            "project_status_updated",
            user_id=user_id,
            path_id=str(path.id),
            skill_id=str(skill.id),
            project_id=str(project.id),
            status=status.value,
            changed=changed,
            skill_progress=skill.progress_percentage,
            overall_progress=path.overall_progress,
        )
        return ProjectProgress(
            path=path, skill=skill, project=project, applied=changed
        )

    async def _deactivate_all(self, user_id: str, now: datetime) -> int:
        result = await self.db.execute(
            select(LearningPath).where(
                LearningPath.user_id == user_id,
                LearningPath.is_active.is_(True),
            )
        )
        paths = list(result.scalars().all())
        for path in paths:
            path.is_active = False
            path.updated_at = now
        return len(paths)

    async def _load(self, user_id: str, path_id: UUID) -> Optional[LearningPath]:
        result = await self.db.execute(
            select(LearningPath).where(
                LearningPath.id == path_id,
                LearningPath.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def _load_active(self, user_id: str, path_id: UUID) -> LearningPath:
        path = await self._load(user_id, path_id)
        if not path or not path.is_active:
            raise NotFound("No active learning path found")
        return path

    def _find_skill(self, path: LearningPath, skill_id: UUID) -> Skill:
        for skill in path.skills:
            if skill.id == skill_id:
                return skill
        raise NotFound("Skill not found", {"skill_id": str(skill_id)})

    def _find_project(self, skill: Skill, project_id: UUID) -> Project:
        for project in skill.projects:
            if project.id == project_id:
                return project
        raise NotFound("Project not found", {"project_id": str(project_id)})
