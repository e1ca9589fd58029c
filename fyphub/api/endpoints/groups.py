from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.api.access import get_group_or_404, check_leader_rights, is_admin, is_member
from fyphub.api.endpoints.auth import get_current_user
from fyphub.db.session import get_db
from fyphub.models.user import User
from fyphub.schemas.group import (
    Group,
    GroupActivity,
    GroupCreate,
    GroupCreated,
    GroupDetail,
    GroupList,
    GroupMember,
    GroupMemberCreate,
    GroupSearchResult,
    GroupUpdate,
    Invite,
    InviteCreate,
    InviteLookup,
    JoinGroup,
    TransferLeadership,
)
from fyphub.services import group as group_service
from fyphub.services import invite as invite_service
from fyphub.services import rule as rule_service
from fyphub.services import user as user_service

router = APIRouter()


async def check_group_not_full(db: AsyncSession, group_id: int) -> None:
    max_group_size = await rule_service.get_max_group_size(db)
    if await group_service.count_members(db, group_id=group_id) >= max_group_size:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Group is full (maximum {max_group_size} members)",
        )


@router.get("/", response_model=GroupList)
async def read_groups(
    db: AsyncSession = Depends(get_db),
    name: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Получить список групп с поиском по имени и пагинацией.
    """
    return await group_service.search(db, name=name, page=page, limit=limit)


@router.get("/search", response_model=GroupSearchResult)
async def search_groups(
    db: AsyncSession = Depends(get_db),
    q: str = Query("", max_length=100),
    has_member: Optional[int] = None,
    has_projects: bool = False,
    has_repositories: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Поиск групп по имени и описанию.
    Можно оставить только группы с участником, с проектами или с репозиториями.
    """
    return await group_service.filter_search(
        db,
        query=q,
        has_member=has_member,
        has_projects=has_projects,
        has_repositories=has_repositories,
        page=page,
        limit=limit,
    )


@router.post("/", response_model=GroupCreated, status_code=status.HTTP_201_CREATED)
async def create_group(
    *,
    db: AsyncSession = Depends(get_db),
    group_in: GroupCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Создать новую группу.
    Создатель становится лидером и первым участником.
    """
    if await group_service.is_user_in_any_group(db, user_id=current_user.id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You are already a member of a group")

    if await group_service.get_by_name(db, group_in.name):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Group with this name already exists")

    if not await user_service.is_username_available(db, group_in.group_user_name):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Group username is already taken")

    group = await group_service.create(db, obj_in=group_in, leader_id=current_user.id)
    return {"group": group, "max_group_size": await rule_service.get_max_group_size(db)}


@router.get("/my-group", response_model=GroupDetail)
async def read_my_group(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Группа текущего пользователя.
    """
    group = await group_service.get_user_group(db, user_id=current_user.id)
    if not group:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="You are not a member of any group")
    return await group_service.get_detail(
        db, group=group, max_group_size=await rule_service.get_max_group_size(db), include_private=True
    )


@router.post("/join", response_model=GroupMember, status_code=status.HTTP_201_CREATED)
async def join_group(
    *,
    db: AsyncSession = Depends(get_db),
    join_in: JoinGroup,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Вступить в группу по коду приглашения.
    """
    invite = await invite_service.get_by_code(db, join_in.invite_code)
    if not invite:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid invite code")

    if not invite_service.is_usable(invite):
        raise HTTPException(status_code=status.HTTP_410_GONE, detail="Invite code has expired or was already used")

    if await group_service.is_user_in_any_group(db, user_id=current_user.id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You are already a member of a group")

    group = await group_service.get(db, invite.group_id)
    await check_group_not_full(db, group.id)

    member = await invite_service.join(db, invite=invite, group=group, user_id=current_user.id)
    return {
        "id": member.id,
        "user_id": current_user.id,
        "username": current_user.username,
        "email": current_user.email,
        "first_name": current_user.first_name,
        "last_name": current_user.last_name,
        "role": current_user.role,
        "is_leader": False,
        "joined_at": member.joined_at,
    }


@router.get("/{group_user_name}", response_model=GroupDetail)
async def read_group(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Получить информацию о группе вместе с участниками, проектами и репозиториями.
    """
    group = await get_group_or_404(db, group_user_name)
    include_private = is_admin(current_user) or await is_member(db, group, current_user)
    return await group_service.get_detail(
        db, group=group, max_group_size=await rule_service.get_max_group_size(db), include_private=include_private
    )


@router.get("/{group_user_name}/activities", response_model=List[GroupActivity])
async def read_group_activities(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Последние события группы, новые первыми.
    """
    group = await get_group_or_404(db, group_user_name)
    include_private = is_admin(current_user) or await is_member(db, group, current_user)
    return await group_service.get_activities(db, group=group, include_private=include_private)


@router.patch("/{group_user_name}", response_model=Group)
async def update_group(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    group_in: GroupUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Обновить информацию о группе.
    Доступно лидеру группы и администраторам.
    """
    group = await get_group_or_404(db, group_user_name)
    check_leader_rights(group, current_user)

    if group_in.name and group_in.name != group.name and await group_service.get_by_name(db, group_in.name):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Group with this name already exists")

    return await group_service.update(db, db_obj=group, obj_in=group_in)


@router.delete("/{group_user_name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    current_user: User = Depends(get_current_user),
) -> None:
    """
    Удалить группу со всеми проектами и репозиториями.
    """
    group = await get_group_or_404(db, group_user_name)
    check_leader_rights(group, current_user)

    await group_service.delete(db, group=group)
    return None


@router.get("/{group_user_name}/members", response_model=List[GroupMember])
async def read_group_members(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Получить участников группы.
    """
    group = await get_group_or_404(db, group_user_name)
    return await group_service.get_group_members(db, group=group)


@router.post("/{group_user_name}/members", response_model=GroupMember, status_code=status.HTTP_201_CREATED)
async def add_member_to_group(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    member_in: GroupMemberCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Добавить пользователя в группу.
    Доступно лидеру группы и администраторам.
    """
    group = await get_group_or_404(db, group_user_name)
    check_leader_rights(group, current_user)

    user = await user_service.get(db, id=member_in.user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User {member_in.user_id} not found")

    if await group_service.is_user_in_any_group(db, user_id=user.id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User is already a member of a group")

    await check_group_not_full(db, group.id)
    return await group_service.add_user_to_group(db, group=group, user=user)


@router.delete("/{group_user_name}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member_from_group(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    user_id: int,
    current_user: User = Depends(get_current_user),
) -> None:
    """
    Удалить участника из группы или выйти из нее самому.
    Лидер не может удалить себя, сначала нужно передать лидерство.
    """
    group = await get_group_or_404(db, group_user_name)
    if user_id != current_user.id:
        check_leader_rights(group, current_user)

    if not await group_service.is_user_in_group(db, group_id=group.id, user_id=user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User is not a member of this group")

    if user_id == group.leader_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The group leader cannot be removed; transfer leadership first",
        )

    await group_service.remove_user_from_group(db, group_id=group.id, user_id=user_id)
    return None


@router.post("/{group_user_name}/transfer-leadership", response_model=Group)
async def transfer_leadership(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    transfer_in: TransferLeadership,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Передать лидерство другому участнику группы.
    """
    group = await get_group_or_404(db, group_user_name)
    check_leader_rights(group, current_user)

    if not await group_service.is_user_in_group(db, group_id=group.id, user_id=transfer_in.new_leader_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="New leader must be a member of the group")

    return await group_service.transfer_leadership(db, group=group, new_leader_id=transfer_in.new_leader_id)


@router.post("/{group_user_name}/invite-code", response_model=Invite, status_code=status.HTTP_201_CREATED)
async def create_invite_code(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    invite_in: Optional[InviteCreate] = None,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Сгенерировать код приглашения (действует 24 часа).
    """
    group = await get_group_or_404(db, group_user_name)
    check_leader_rights(group, current_user)
    await check_group_not_full(db, group.id)

    email = invite_in.email if invite_in else None
    return await invite_service.create(db, group=group, created_by_id=current_user.id, email=email)


@router.get("/{group_user_name}/invite-code")
async def read_invite_code(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    code: Optional[str] = Query(None, max_length=64),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    С параметром code: проверить приглашение.
    Без него: список активных приглашений (лидер или администратор).
    """
    group = await get_group_or_404(db, group_user_name)

    if code:
        invite = await invite_service.get_by_code(db, code)
        if not invite or invite.group_id != group.id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid invite code")
        if not invite_service.is_usable(invite):
            raise HTTPException(status_code=status.HTTP_410_GONE, detail="Invite code has expired or was already used")
        return InviteLookup(code=invite.code, expires_at=invite.expires_at, group=Group.model_validate(group))

    check_leader_rights(group, current_user)
    invites = await invite_service.get_active(db, group_id=group.id)
    return [Invite.model_validate(invite) for invite in invites]
