from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.api.access import check_admin_rights
from fyphub.api.endpoints.auth import get_current_user
from fyphub.db.session import get_db
from fyphub.models.user import User
from fyphub.schemas.rule import Rule, RuleUpdate
from fyphub.services import rule as rule_service

router = APIRouter()


@router.get("/", response_model=Rule)
async def read_rules(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Текущие правила (размер группы, сроки).
    """
    return await rule_service.get_rules(db)


@router.put("/", response_model=Rule)
async def update_rules(
    *,
    db: AsyncSession = Depends(get_db),
    rules_in: RuleUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Изменить правила. Только для администраторов.
    """
    check_admin_rights(current_user)
    return await rule_service.update_rules(db, obj_in=rules_in)
