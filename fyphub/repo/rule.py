from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from fyphub.models.rule import Rule


async def get_current_rule(db: AsyncSession) -> Optional[Rule]:
    """Получает последнюю запись правил"""
    result = await db.execute(select(Rule).order_by(Rule.id.desc()).limit(1))
    return result.scalars().first()


async def save_rule_in_db(db: AsyncSession, rule: Rule) -> None:
    db.add(rule)
    await db.commit()
    await db.refresh(rule)
