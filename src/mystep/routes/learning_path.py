"""Learning path, skill and project endpoints.

Every route works on the caller's active learning path.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from redis import asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession

from mystep.auth import get_current_user
from mystep.cache import get_redis
from mystep.db.base import get_db
from mystep.errors import NotFound
from mystep.schemas.learning_path import (
    LearningPath,
    LearningPathCreate,
    LearningPathList,
    LearningPathSummary,
    LearningStats,
    Project,
    ProjectAssign,
    ProjectProgressResponse,
    ProjectStatusUpdate,
    Skill,
    SkillProgressResponse,
)
from mystep.services.learning_path import (
    LearningPathService,
    ProjectProgress,
    SkillProgress,
)

router = APIRouter()


def get_learning_path_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> LearningPathService:
    return LearningPathService(db, redis=redis)


def _skill_response(result: SkillProgress) -> SkillProgressResponse:
    return SkillProgressResponse(
        skill=Skill.model_validate(result.skill),
        skill_progress=result.skill_progress,
        overall_progress=result.overall_progress,
    )


def _project_response(result: ProjectProgress) -> ProjectProgressResponse:
    return ProjectProgressResponse(
        project=Project.model_validate(result.project),
        skill_progress=result.skill_progress,
        overall_progress=result.overall_progress,
        applied=result.applied,
    )


@router.post("", response_model=LearningPath, status_code=201)
async def create_learning_path(
    payload: LearningPathCreate,
    service: LearningPathService = Depends(get_learning_path_service),
    user_id: str = Depends(get_current_user),
) -> LearningPath:
    """Create a learning path; any previous one is deactivated."""
    return await service.create_learning_path(user_id, payload)


@router.get("", response_model=LearningPath)
async def get_learning_path(
    service: LearningPathService = Depends(get_learning_path_service),
    user_id: str = Depends(get_current_user),
) -> LearningPath:
    """Get the active learning path."""
    return await service.require_active_path(user_id)


@router.delete("")
async def delete_learning_path(
    service: LearningPathService = Depends(get_learning_path_service),
    user_id: str = Depends(get_current_user),
) -> dict:
    """Deactivate the active learning path. History is kept."""
    if not await service.deactivate_active_path(user_id):
        raise NotFound("No active learning path found")
    return {"message": "Learning path deleted successfully"}


@router.get("/history", response_model=LearningPathList)
async def list_learning_paths(
    service: LearningPathService = Depends(get_learning_path_service),
    user_id: str = Depends(get_current_user),
) -> LearningPathList:
    """List all of the user's learning paths, newest first."""
    paths = await service.list_paths(user_id)
    return LearningPathList(
        items=[LearningPathSummary.model_validate(p) for p in paths]
    )


@router.get("/stats", response_model=LearningStats)
async def get_learning_stats(
    service: LearningPathService = Depends(get_learning_path_service),
    user_id: str = Depends(get_current_user),
) -> LearningStats:
    """Skill and project counts for the active learning path."""
    return await service.get_stats(user_id)


@router.post("/skills/{skill_id}/projects", response_model=SkillProgressResponse)
async def assign_projects(
    skill_id: UUID,
    payload: ProjectAssign,
    service: LearningPathService = Depends(get_learning_path_service),
    user_id: str = Depends(get_current_user),
) -> SkillProgressResponse:
    """Replace the projects of a skill."""
    path = await service.require_active_path(user_id)
    result = await service.assign_projects(
        user_id, path.id, skill_id, payload.projects
    )
    return _skill_response(result)


@router.put(
    "/skills/{skill_id}/projects/{project_id}",
    response_model=ProjectProgressResponse,
)
async def update_project_status(
    skill_id: UUID,
    project_id: UUID,
    payload: ProjectStatusUpdate,
    service: LearningPathService = Depends(get_learning_path_service),
    user_id: str = Depends(get_current_user),
) -> ProjectProgressResponse:
    """Set a project's status."""
    path = await service.require_active_path(user_id)
    result = await service.set_project_status(
        user_id, path.id, skill_id, project_id, payload.status
    )
    return _project_response(result)


@router.post(
    "/skills/{skill_id}/projects/{project_id}/start",
    response_model=ProjectProgressResponse,
)
async def start_project(
    skill_id: UUID,
    project_id: UUID,
    service: LearningPathService = Depends(get_learning_path_service),
    user_id: str = Depends(get_current_user),
) -> ProjectProgressResponse:
    """Start a project that has not been started yet."""
    path = await service.require_active_path(user_id)
    result = await service.start_project(user_id, path.id, skill_id, project_id)
    return _project_response(result)


@router.post(
    "/skills/{skill_id}/projects/{project_id}/complete",
    response_model=ProjectProgressResponse,
)
async def complete_project(
    skill_id: UUID,
    project_id: UUID,
    service: LearningPathService = Depends(get_learning_path_service),
    user_id: str = Depends(get_current_user),
) -> ProjectProgressResponse:
    """Mark a project done."""
    path = await service.require_active_path(user_id)
    result = await service.complete_project(user_id, path.id, skill_id, project_id)
    return _project_response(result)


@router.get("/skills/{skill_name:path}", response_model=Skill)
async def get_skill_by_name(
    skill_name: str,
    service: LearningPathService = Depends(get_learning_path_service),
    user_id: str = Depends(get_current_user),
) -> Skill:
    """Look up a skill of the active path by name, ignoring case."""
    path = await service.require_active_path(user_id)
    return await service.find_skill_by_name(user_id, path.id, skill_name)
