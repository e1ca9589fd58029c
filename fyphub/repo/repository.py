import hashlib
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from fyphub.models.repository import Repository, Branch, Commit, FileChange, DEFAULT_BRANCH


def generate_commit_id(repository_id: int) -> str:
    """40-символьный hex идентификатор коммита"""
    return hashlib.sha1(f"{repository_id}:{uuid.uuid4().hex}".encode("utf-8")).hexdigest()


async def get_repository_by_id(db: AsyncSession, id: int) -> Optional[Repository]:
    result = await db.execute(select(Repository).where(Repository.id == id))
    return result.scalars().first()


async def get_repository_by_name(db: AsyncSession, group_id: int, name: str) -> Optional[Repository]:
    """Получает репозиторий группы по имени"""
    result = await db.execute(
        select(Repository).where((Repository.group_id == group_id) & (Repository.name == name))
    )
    return result.scalars().first()


async def get_repositories_by_group(
    db: AsyncSession,
    group_id: int,
    name: Optional[str] = None,
    include_private: bool = False,
    offset: int = 0,
    limit: int = 20,
) -> Tuple[List[Repository], int]:
    """Получает репозитории группы с фильтром по имени и видимости"""
    conditions = [Repository.group_id == group_id]
    if name:
        conditions.append(func.lower(Repository.name).contains(name.lower()))
    if not include_private:
        conditions.append(Repository.is_private.is_(False))

    total = (await db.execute(select(func.count(Repository.id)).where(*conditions))).scalar_one()
    result = await db.execute(
        select(Repository).where(*conditions).order_by(Repository.updated_at.desc(), Repository.id.desc()).offset(offset).limit(limit)
    )
    return result.scalars().all(), total


async def get_repository_names_by_group(db: AsyncSession, group_id: int) -> List[str]:
    result = await db.execute(select(Repository.name).where(Repository.group_id == group_id))
    return result.scalars().all()


async def count_repositories(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(Repository.id)))
    return result.scalar_one()


async def create_repository_with_initial_commit(db: AsyncSession, repository: Repository, author_id: Optional[int]) -> Commit:
    """
    Создает репозиторий, начальный коммит и ветку main в одной транзакции.
    При ошибке откатывается все.
    """
    try:
        db.add(repository)
        await db.flush()

        commit = Commit(
            id=generate_commit_id(repository.id),
            message="Initial commit",
            repository_id=repository.id,
            author_id=author_id,
            parent_commit_ids=[],
        )
        db.add(commit)
        await db.flush()

        db.add(Branch(name=DEFAULT_BRANCH, repository_id=repository.id, head_commit_id=commit.id))
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(repository)
    return commit


async def update_repository_in_db(db: AsyncSession, repository: Repository) -> None:
    db.add(repository)
    await db.commit()
    await db.refresh(repository)


async def delete_repository_from_db(db: AsyncSession, id: int) -> bool:
    """Удаляет репозиторий вместе с ветками и коммитами"""
    result = await db.execute(delete(Repository).where(Repository.id == id))
    await db.commit()
    return result.rowcount > 0


# Ветки
async def get_branch(db: AsyncSession, repository_id: int, name: str) -> Optional[Branch]:
    result = await db.execute(
        select(Branch).where((Branch.repository_id == repository_id) & (Branch.name == name))
    )
    return result.scalars().first()


async def get_branches(db: AsyncSession, repository_id: int) -> List[Branch]:
    result = await db.execute(select(Branch).where(Branch.repository_id == repository_id).order_by(Branch.name))
    return result.scalars().all()


async def create_branch_in_db(db: AsyncSession, branch: Branch) -> None:
    db.add(branch)
    await db.commit()
    await db.refresh(branch)


# Коммиты
async def get_commit(db: AsyncSession, repository_id: int, commit_id: str) -> Optional[Commit]:
    result = await db.execute(
        select(Commit).where((Commit.repository_id == repository_id) & (Commit.id == commit_id))
    )
    return result.scalars().first()


async def get_commits(db: AsyncSession, repository_id: int) -> List[Commit]:
    """Получает все коммиты репозитория, новые первыми"""
    result = await db.execute(
        select(Commit).where(Commit.repository_id == repository_id).order_by(Commit.timestamp.desc())
    )
    return result.scalars().all()


async def get_file_changes(db: AsyncSession, commit_id: str) -> List[FileChange]:
    result = await db.execute(select(FileChange).where(FileChange.commit_id == commit_id).order_by(FileChange.id))
    return result.scalars().all()


async def count_commits_for_repositories(db: AsyncSession, repository_ids: List[int]) -> int:
    if not repository_ids:
        return 0
    result = await db.execute(select(func.count(Commit.id)).where(Commit.repository_id.in_(repository_ids)))
    return result.scalar_one()


async def create_commit_on_branch(
    db: AsyncSession, commit: Commit, file_changes: List[FileChange], branch: Branch
) -> None:
    """Сохраняет коммит с изменениями файлов и переносит на него голову ветки"""
    try:
        db.add(commit)
        await db.flush()
        for change in file_changes:
            change.commit_id = commit.id
            db.add(change)
        branch.head_commit_id = commit.id
        db.add(branch)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(commit)
