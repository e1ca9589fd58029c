from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from fyphub.models.advisor_request import AdvisorRequest, AdvisorRequestStatus


async def get_request_by_id(db: AsyncSession, id: int) -> Optional[AdvisorRequest]:
    result = await db.execute(select(AdvisorRequest).where(AdvisorRequest.id == id))
    return result.scalars().first()


async def get_latest_request_for_project(db: AsyncSession, project_id: int) -> Optional[AdvisorRequest]:
    """Последний запрос руководителя по проекту"""
    result = await db.execute(
        select(AdvisorRequest)
        .where(AdvisorRequest.project_id == project_id)
        .order_by(AdvisorRequest.created_at.desc(), AdvisorRequest.id.desc())
        .limit(1)
    )
    return result.scalars().first()


async def get_pending_request_for_project(db: AsyncSession, project_id: int) -> Optional[AdvisorRequest]:
    result = await db.execute(
        select(AdvisorRequest).where(
            AdvisorRequest.project_id == project_id,
            AdvisorRequest.status == AdvisorRequestStatus.PENDING,
        )
    )
    return result.scalars().first()


async def get_requests_for_advisor(
    db: AsyncSession, advisor_id: int, status: Optional[AdvisorRequestStatus] = None
) -> List[AdvisorRequest]:
    """Запросы, адресованные руководителю"""
    query = select(AdvisorRequest).where(AdvisorRequest.requested_advisor_id == advisor_id)
    if status:
        query = query.where(AdvisorRequest.status == status)
    result = await db.execute(query.order_by(AdvisorRequest.created_at.desc(), AdvisorRequest.id.desc()))
    return result.scalars().all()


async def count_pending_for_advisor(db: AsyncSession, advisor_id: int) -> int:
    result = await db.execute(
        select(func.count(AdvisorRequest.id)).where(
            AdvisorRequest.requested_advisor_id == advisor_id,
            AdvisorRequest.status == AdvisorRequestStatus.PENDING,
        )
    )
    return result.scalar_one()


async def save_request_in_db(db: AsyncSession, request: AdvisorRequest) -> None:
    db.add(request)
    await db.commit()
    await db.refresh(request)


async def delete_request_from_db(db: AsyncSession, request: AdvisorRequest) -> None:
    await db.delete(request)
    await db.commit()
