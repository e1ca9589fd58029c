from typing import List, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from fyphub.models.document import Document


async def get_document_by_id(db: AsyncSession, id: int) -> Optional[Document]:
    result = await db.execute(select(Document).where(Document.id == id))
    return result.scalars().first()


async def get_documents_for_project(db: AsyncSession, project_id: int) -> List[Document]:
    result = await db.execute(
        select(Document).where(Document.project_id == project_id).order_by(Document.created_at.desc(), Document.id.desc())
    )
    return result.scalars().all()


async def save_document_in_db(db: AsyncSession, document: Document) -> None:
    db.add(document)
    await db.commit()
    await db.refresh(document)


async def delete_document_from_db(db: AsyncSession, id: int) -> bool:
    result = await db.execute(delete(Document).where(Document.id == id))
    await db.commit()
    return result.rowcount > 0
