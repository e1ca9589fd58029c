from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.api.access import (
    get_group_or_404,
    get_project_or_404,
    check_member_rights,
    check_read_access,
    is_admin,
    is_leader,
)
from fyphub.api.endpoints.auth import get_current_user
from fyphub.db.session import get_db
from fyphub.models.document import Document as DocumentModel
from fyphub.models.group import Group
from fyphub.models.project import Project
from fyphub.models.user import User
from fyphub.schemas.document import Document, DocumentCreate, DocumentUpdate
from fyphub.services import document as document_service

router = APIRouter()


async def get_document_or_404(db: AsyncSession, project: Project, document_id: int) -> DocumentModel:
    document = await document_service.get(db, document_id)
    if not document or document.project_id != project.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Document {document_id} not found")
    return document


# Изменять документ может загрузивший его, лидер группы или администратор
def check_document_rights(group: Group, document: DocumentModel, current_user: User):
    if is_admin(current_user) or is_leader(group, current_user) or document.uploaded_by_id == current_user.id:
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")


@router.get("/", response_model=List[Document])
async def read_documents(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    current_user: User = Depends(get_current_user),
) -> Any:
    group = await get_group_or_404(db, group_user_name)
    await check_read_access(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)
    return await document_service.get_for_project(db, project_id=project.id)


@router.post("/", response_model=Document, status_code=status.HTTP_201_CREATED)
async def create_document(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    document_in: DocumentCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Добавить документ к проекту.
    """
    group = await get_group_or_404(db, group_user_name)
    await check_member_rights(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)
    return await document_service.create(
        db, obj_in=document_in, project_id=project.id, uploaded_by_id=current_user.id
    )


@router.get("/{document_id}", response_model=Document)
async def read_document(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    document_id: int,
    current_user: User = Depends(get_current_user),
) -> Any:
    group = await get_group_or_404(db, group_user_name)
    await check_read_access(db, group, current_user)
    project = await get_project_or_404(db, group, project_id)
    return await get_document_or_404(db, project, document_id)


@router.patch("/{document_id}", response_model=Document)
async def update_document(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    document_id: int,
    document_in: DocumentUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    group = await get_group_or_404(db, group_user_name)
    project = await get_project_or_404(db, group, project_id)
    document = await get_document_or_404(db, project, document_id)
    check_document_rights(group, document, current_user)
    return await document_service.update(db, db_obj=document, obj_in=document_in)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    *,
    db: AsyncSession = Depends(get_db),
    group_user_name: str,
    project_id: int,
    document_id: int,
    current_user: User = Depends(get_current_user),
) -> None:
    group = await get_group_or_404(db, group_user_name)
    project = await get_project_or_404(db, group, project_id)
    document = await get_document_or_404(db, project, document_id)
    check_document_rights(group, document, current_user)

    await document_service.delete(db, id=document.id)
    return None
