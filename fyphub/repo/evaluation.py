from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from fyphub.models.evaluation import Evaluation, EvaluationKind


async def get_evaluations_for_project(db: AsyncSession, project_id: int, kind: Optional[EvaluationKind] = None) -> List[Evaluation]:
    query = select(Evaluation).where(Evaluation.project_id == project_id)
    if kind:
        query = query.where(Evaluation.kind == kind)
    result = await db.execute(query.order_by(Evaluation.created_at.desc(), Evaluation.id.desc()))
    return result.scalars().all()


async def get_evaluation_by_author(
    db: AsyncSession, project_id: int, author_id: int, kind: EvaluationKind = EvaluationKind.EVALUATION
) -> Optional[Evaluation]:
    """Оценка проекта, выставленная конкретным пользователем"""
    result = await db.execute(
        select(Evaluation).where(
            Evaluation.project_id == project_id,
            Evaluation.author_id == author_id,
            Evaluation.kind == kind,
        )
    )
    return result.scalars().first()


async def get_evaluations_by_author(db: AsyncSession, author_id: int) -> List[Evaluation]:
    result = await db.execute(
        select(Evaluation)
        .where(Evaluation.author_id == author_id, Evaluation.kind == EvaluationKind.EVALUATION)
        .order_by(Evaluation.updated_at.desc())
    )
    return result.scalars().all()


async def save_evaluation_in_db(db: AsyncSession, evaluation: Evaluation) -> None:
    db.add(evaluation)
    await db.commit()
    await db.refresh(evaluation)
