from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

import fyphub.repo.document as document_repo
from fyphub.models.document import Document
from fyphub.schemas.document import DocumentCreate, DocumentUpdate


async def get(db: AsyncSession, id: int) -> Optional[Document]:
    return await document_repo.get_document_by_id(db, id)


async def get_for_project(db: AsyncSession, *, project_id: int) -> List[Document]:
    return await document_repo.get_documents_for_project(db, project_id)


async def create(db: AsyncSession, *, obj_in: DocumentCreate, project_id: int, uploaded_by_id: int) -> Document:
    db_obj = Document(**obj_in.model_dump(), project_id=project_id, uploaded_by_id=uploaded_by_id)
    await document_repo.save_document_in_db(db, db_obj)
    return db_obj


async def update(db: AsyncSession, *, db_obj: Document, obj_in: DocumentUpdate) -> Document:
    for field, value in obj_in.model_dump(exclude_unset=True).items():
        if value is None and field in ("title", "category"):
            continue
        setattr(db_obj, field, value)
    await document_repo.save_document_in_db(db, db_obj)
    return db_obj


async def delete(db: AsyncSession, *, id: int) -> bool:
    return await document_repo.delete_document_from_db(db, id)
