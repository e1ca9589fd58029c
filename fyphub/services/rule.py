import logging
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

import fyphub.cache.client as cache
import fyphub.repo.rule as rule_repo
from fyphub.core.config import settings
from fyphub.models.rule import Rule
from fyphub.schemas.rule import RuleUpdate

logger = logging.getLogger(__name__)

RULES_CACHE_KEY = "rules:current"


def _serialize(rule: Rule) -> Dict[str, Any]:
    return {
        "max_group_size": rule.max_group_size,
        "advisor_request_deadline": rule.advisor_request_deadline.isoformat() if rule.advisor_request_deadline else None,
        "project_submission_deadline": (
            rule.project_submission_deadline.isoformat() if rule.project_submission_deadline else None
        ),
    }


async def get_rules(db: AsyncSession) -> Dict[str, Any]:
    """Текущие правила; значения по умолчанию, если правила не заданы"""
    cached = await cache.get_cache(RULES_CACHE_KEY)
    if cached:
        return cached

    rule = await rule_repo.get_current_rule(db)
    if rule:
        data = _serialize(rule)
    else:
        data = {
            "max_group_size": settings.DEFAULT_MAX_GROUP_SIZE,
            "advisor_request_deadline": None,
            "project_submission_deadline": None,
        }

    await cache.set_cache(RULES_CACHE_KEY, data)
    return data


async def get_max_group_size(db: AsyncSession) -> int:
    rules = await get_rules(db)
    return rules["max_group_size"]


async def update_rules(db: AsyncSession, *, obj_in: RuleUpdate) -> Dict[str, Any]:
    """Создает или обновляет единственную запись правил"""
    rule = await rule_repo.get_current_rule(db)
    if rule is None:
        rule = Rule(max_group_size=settings.DEFAULT_MAX_GROUP_SIZE)

    for field, value in obj_in.model_dump(exclude_unset=True).items():
        if field == "max_group_size" and value is None:
            continue
        setattr(rule, field, value)

    await rule_repo.save_rule_in_db(db, rule)
    await cache.delete_cache(RULES_CACHE_KEY)
    logger.info(f"Rules updated: max_group_size={rule.max_group_size}")
    return _serialize(rule)
