from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from fyphub.models.advice_request import AdviceRequest


async def get_advice_by_id(db: AsyncSession, id: int) -> Optional[AdviceRequest]:
    result = await db.execute(select(AdviceRequest).where(AdviceRequest.id == id))
    return result.scalars().first()


async def get_advice_for_project(db: AsyncSession, project_id: int) -> List[AdviceRequest]:
    """Запросы совета по проекту, новые первыми"""
    result = await db.execute(
        select(AdviceRequest)
        .where(AdviceRequest.project_id == project_id)
        .order_by(AdviceRequest.created_at.desc(), AdviceRequest.id.desc())
    )
    return result.scalars().all()


async def save_advice_in_db(db: AsyncSession, advice: AdviceRequest) -> None:
    db.add(advice)
    await db.commit()
    await db.refresh(advice)
