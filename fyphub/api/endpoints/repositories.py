from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.api.access import (
    get_group_or_404,
    get_repository_or_404,
    check_leader_rights,
    check_member_rights,
    check_repository_access,
    get_project_or_404,
    is_admin,
    is_member,
)
from fyphub.api.endpoints.auth import get_current_user, get_current_user_optional
from fyphub.db.session import get_db
from fyphub.models.user import User
from fyphub.schemas.feedback import Feedback, RepositoryFeedbackCreate
from fyphub.schemas.repository import (
    Branch,
    BranchCreate,
    Commit,
    CommitCreate,
    CommitWithChanges,
    Repository,
    RepositoryCreate,
    RepositoryList,
    RepositoryUpdate,
)
from fyphub.services import feedback as feedback_service
from fyphub.services import project as project_service
from fyphub.services import repository as repository_service

router = APIRouter()


@router.get("/", response_model=RepositoryList)
async def read_repositories(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    name: Optional[str] = Query(None, max_length=255),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> Any:
    """
    Получить репозитории группы.
    Приватные репозитории видны только участникам и администраторам.
    """
    group = await get_group_or_404(db, group_user_name)
    include_private = current_user is not None and (
        is_admin(current_user) or await is_member(db, group, current_user)
    )
    return await repository_service.get_multi(
        db, group_id=group.id, name=name, include_private=include_private, offset=offset, limit=limit
    )


@router.post("/", response_model=Repository, status_code=status.HTTP_201_CREATED)
async def create_repository(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_in: RepositoryCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Создать репозиторий группы.
    Вместе с ним создаются начальный коммит и ветка main.
    """
    group = await get_group_or_404(db, group_user_name)
    await check_member_rights(db, group, current_user)

    if await repository_service.get_by_name(db, group_id=group.id, name=repository_in.name):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Repository {repository_in.name} already exists in this group",
        )

    return await repository_service.create(db, obj_in=repository_in, group=group, owner_id=current_user.id)


@router.get("/{repository_name}", response_model=Repository)
async def read_repository(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> Any:
    """
    Получить репозиторий. Публичный доступен без авторизации.
    """
    group = await get_group_or_404(db, group_user_name)
    repository = await get_repository_or_404(db, group, repository_name)
    await check_repository_access(db, group, repository, current_user)
    return repository


@router.patch("/{repository_name}", response_model=Repository)
async def update_repository(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    repository_in: RepositoryUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    group = await get_group_or_404(db, group_user_name)
    await check_member_rights(db, group, current_user)
    repository = await get_repository_or_404(db, group, repository_name)
    return await repository_service.update(db, db_obj=repository, obj_in=repository_in, group=group)


@router.delete("/{repository_name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_repository(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    current_user: User = Depends(get_current_user),
) -> None:
    """
    Удалить репозиторий. Только лидер группы или администратор.
    """
    group = await get_group_or_404(db, group_user_name)
    check_leader_rights(group, current_user)
    repository = await get_repository_or_404(db, group, repository_name)
    await repository_service.delete(db, db_obj=repository, group=group)
    return None


@router.get("/{repository_name}/branches", response_model=List[Branch])
async def read_branches(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> Any:
    group = await get_group_or_404(db, group_user_name)
    repository = await get_repository_or_404(db, group, repository_name)
    await check_repository_access(db, group, repository, current_user)
    return await repository_service.get_branches(db, repository_id=repository.id)


@router.post("/{repository_name}/branches", response_model=Branch, status_code=status.HTTP_201_CREATED)
async def create_branch(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    branch_in: BranchCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Создать ветку от существующей (по умолчанию от main).
    """
    group = await get_group_or_404(db, group_user_name)
    await check_member_rights(db, group, current_user)
    repository = await get_repository_or_404(db, group, repository_name)

    if await repository_service.get_branch(db, repository_id=repository.id, name=branch_in.name):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Branch {branch_in.name} already exists")

    source = await repository_service.get_branch(db, repository_id=repository.id, name=branch_in.source_branch)
    if not source:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Branch {branch_in.source_branch} not found")

    return await repository_service.create_branch(db, repository_id=repository.id, obj_in=branch_in, source=source)


@router.get("/{repository_name}/commits", response_model=List[Commit])
async def read_commits(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    branch: Optional[str] = Query(None, max_length=255),
    limit: int = Query(30, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> Any:
    """
    История коммитов репозитория или отдельной ветки.
    """
    group = await get_group_or_404(db, group_user_name)
    repository = await get_repository_or_404(db, group, repository_name)
    await check_repository_access(db, group, repository, current_user)

    branch_obj = None
    if branch:
        branch_obj = await repository_service.get_branch(db, repository_id=repository.id, name=branch)
        if not branch_obj:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Branch {branch} not found")

    return await repository_service.get_commits(
        db, repository_id=repository.id, branch=branch_obj, offset=offset, limit=limit
    )


@router.post("/{repository_name}/commits", response_model=Commit, status_code=status.HTTP_201_CREATED)
async def create_commit(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    commit_in: CommitCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Создать коммит и передвинуть голову ветки.
    """
    group = await get_group_or_404(db, group_user_name)
    await check_member_rights(db, group, current_user)
    repository = await get_repository_or_404(db, group, repository_name)

    branch = await repository_service.get_branch(db, repository_id=repository.id, name=commit_in.branch_name)
    if not branch:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Branch {commit_in.branch_name} not found")

    return await repository_service.create_commit(
        db, repository=repository, branch=branch, obj_in=commit_in, author_id=current_user.id, group=group
    )


@router.get("/{repository_name}/commits/{commit_id}", response_model=CommitWithChanges)
async def read_commit(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    commit_id: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> Any:
    group = await get_group_or_404(db, group_user_name)
    repository = await get_repository_or_404(db, group, repository_name)
    await check_repository_access(db, group, repository, current_user)

    commit = await repository_service.get_commit(db, repository_id=repository.id, commit_id=commit_id)
    if not commit:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Commit {commit_id} not found")
    return commit


@router.get("/{repository_name}/feedback", response_model=List[Feedback])
async def read_repository_feedback(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> Any:
    group = await get_group_or_404(db, group_user_name)
    repository = await get_repository_or_404(db, group, repository_name)
    await check_repository_access(db, group, repository, current_user)
    return await feedback_service.get_for_repository(db, repository_id=repository.id)


@router.post("/{repository_name}/feedback", response_model=Feedback, status_code=status.HTTP_201_CREATED)
async def create_repository_feedback(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    repository_name: str,
    feedback_in: RepositoryFeedbackCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Оставить отзыв к репозиторию.
    С project_id нужен руководитель или оценщик этого проекта,
    без него руководитель или оценщик любого проекта группы.
    """
    group = await get_group_or_404(db, group_user_name)
    repository = await get_repository_or_404(db, group, repository_name)

    project = None
    if feedback_in.project_id is not None:
        project = await get_project_or_404(db, group, feedback_in.project_id)
        allowed = (
            is_admin(current_user)
            or project.advisor_id == current_user.id
            or await project_service.is_evaluator_assigned(db, project_id=project.id, evaluator_id=current_user.id)
        )
    else:
        allowed = is_admin(current_user) or await project_service.has_project_role_in_group(
            db, group_id=group.id, user_id=current_user.id
        )
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the project advisor or an assigned evaluator can give feedback",
        )

    return await feedback_service.create_for_repository(
        db, obj_in=feedback_in, repository=repository, group=group, author_id=current_user.id, project=project
    )
