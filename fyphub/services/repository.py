import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

import fyphub.repo.repository as repository_repo
from fyphub.models.group import Group
from fyphub.models.repository import Repository, Branch, Commit, FileChange
from fyphub.schemas.repository import RepositoryCreate, RepositoryUpdate, BranchCreate, CommitCreate
from fyphub.services import explorer as explorer_service
from fyphub.utils.time import format_time_ago, utc_now

logger = logging.getLogger(__name__)


async def get_by_name(db: AsyncSession, *, group_id: int, name: str) -> Optional[Repository]:
    """Получает репозиторий группы по имени"""
    return await repository_repo.get_repository_by_name(db, group_id, name)


async def get_multi(
    db: AsyncSession,
    *,
    group_id: int,
    name: Optional[str] = None,
    include_private: bool = False,
    offset: int = 0,
    limit: int = 20,
) -> Dict[str, Any]:
    """Репозитории группы с пагинацией по смещению"""
    repositories, total = await repository_repo.get_repositories_by_group(
        db, group_id, name=name, include_private=include_private, offset=offset, limit=limit
    )
    now = utc_now()
    items = []
    for repository in repositories:
        item = {column.name: getattr(repository, column.name) for column in Repository.__table__.columns}
        item["visibility"] = repository.visibility
        item["updated_ago"] = format_time_ago(repository.updated_at, now)
        items.append(item)

    return {
        "repositories": items,
        "pagination": {
            "total": total,
            "offset": offset,
            "limit": limit,
            "has_more": offset + len(items) < total,
        },
    }


async def create(db: AsyncSession, *, obj_in: RepositoryCreate, group: Group, owner_id: int) -> Repository:
    """Создает репозиторий с начальным коммитом и веткой main"""
    db_obj = Repository(
        name=obj_in.name,
        description=obj_in.description,
        is_private=obj_in.private,
        group_id=group.id,
        owner_id=owner_id,
    )
    commit = await repository_repo.create_repository_with_initial_commit(db, db_obj, owner_id)
    logger.info(f"Repository {group.group_user_name}/{db_obj.name} created with initial commit {commit.id}")
    return db_obj


async def update(db: AsyncSession, *, db_obj: Repository, obj_in: RepositoryUpdate, group: Group) -> Repository:
    update_data = obj_in.model_dump(exclude_unset=True)
    visibility = update_data.pop("visibility", None)
    if visibility is not None:
        update_data["is_private"] = visibility == "private"

    for field, value in update_data.items():
        if field == "is_private" and value is None:
            continue
        setattr(db_obj, field, value)

    await repository_repo.update_repository_in_db(db, db_obj)
    await explorer_service.invalidate(group.group_user_name, db_obj.name)
    return db_obj


async def delete(db: AsyncSession, *, db_obj: Repository, group: Group) -> bool:
    """Удаляет репозиторий со всеми ветками и коммитами"""
    name = db_obj.name
    deleted = await repository_repo.delete_repository_from_db(db, db_obj.id)
    await explorer_service.invalidate(group.group_user_name, name)
    return deleted


# Ветки
async def get_branches(db: AsyncSession, *, repository_id: int) -> List[Branch]:
    return await repository_repo.get_branches(db, repository_id)


async def get_branch(db: AsyncSession, *, repository_id: int, name: str) -> Optional[Branch]:
    return await repository_repo.get_branch(db, repository_id, name)


async def create_branch(db: AsyncSession, *, repository_id: int, obj_in: BranchCreate, source: Branch) -> Branch:
    """Создает ветку, указывающую на голову исходной ветки"""
    db_obj = Branch(name=obj_in.name, repository_id=repository_id, head_commit_id=source.head_commit_id)
    await repository_repo.create_branch_in_db(db, db_obj)
    return db_obj


# Коммиты
async def get_commits(
    db: AsyncSession, *, repository_id: int, branch: Optional[Branch] = None, offset: int = 0, limit: int = 30
) -> List[Commit]:
    """История коммитов; для ветки идем от головы по первым родителям"""
    commits = await repository_repo.get_commits(db, repository_id)
    if branch is not None:
        by_id = {commit.id: commit for commit in commits}
        history = []
        current_id = branch.head_commit_id
        while current_id and current_id in by_id:
            commit = by_id[current_id]
            history.append(commit)
            current_id = commit.parent_commit_ids[0] if commit.parent_commit_ids else None
        commits = history
    return commits[offset : offset + limit]


async def get_commit(db: AsyncSession, *, repository_id: int, commit_id: str) -> Optional[Dict[str, Any]]:
    """Коммит вместе с изменениями файлов"""
    commit = await repository_repo.get_commit(db, repository_id, commit_id)
    if not commit:
        return None
    data = {column.name: getattr(commit, column.name) for column in Commit.__table__.columns}
    data["file_changes"] = await repository_repo.get_file_changes(db, commit.id)
    return data


async def create_commit(
    db: AsyncSession, *, repository: Repository, branch: Branch, obj_in: CommitCreate, author_id: int, group: Group
) -> Commit:
    """Создает коммит в ветке, родитель: текущая голова ветки"""
    commit = Commit(
        id=repository_repo.generate_commit_id(repository.id),
        message=obj_in.message,
        repository_id=repository.id,
        author_id=author_id,
        parent_commit_ids=[branch.head_commit_id] if branch.head_commit_id else [],
        timestamp=utc_now(),
    )
    changes = [FileChange(**change.model_dump()) for change in obj_in.file_changes]
    await repository_repo.create_commit_on_branch(db, commit, changes, branch)

    repository.updated_at = utc_now()
    await repository_repo.update_repository_in_db(db, repository)
    await explorer_service.invalidate(group.group_user_name, repository.name)
    return commit
