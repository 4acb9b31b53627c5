"""
Lookup management API endpoints
Sources, categories, subcategories, projects, phases and file formats

Each lookup gets the same four routes:
    GET    /management/<kind>         list (ordered by name)
    POST   /management/<kind>         create
    PUT    /management/<kind>/{id}    rename / re-describe
    DELETE /management/<kind>/{id}    delete (refused while chats reference it)
"""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from chatvault.database import get_db
from chatvault.api.deps import require_user
from chatvault.models import Source, Category, Subcategory, Project, Phase, FileFormat
from chatvault.schemas.user import CurrentUser
from chatvault.schemas.management import (
    LookupCreate,
    LookupUpdate,
    LookupResponse,
    SubcategoryCreate,
    SubcategoryResponse,
    PhaseCreate,
    PhaseResponse,
)
from chatvault.services.lookup_service import LookupService, LOOKUP_KINDS

router = APIRouter(prefix="/management", tags=["management"])


def add_lookup_routes(
    path: str,
    model,
    create_schema=LookupCreate,
    response_schema=LookupResponse,
    parent_param: Optional[str] = None,
):
    """
    Register list/create/update/delete routes for one lookup model

    Args:
        path: URL segment ("sources")
        model: SQLAlchemy lookup model
        create_schema: Request body for POST
        response_schema: Response model
        parent_param: Query parameter filtering children by parent ("categoryId")
    """
    label = LOOKUP_KINDS[model].label
    noun = LOOKUP_KINDS[model].noun

    if parent_param:
        @router.get(f"/{path}", response_model=List[response_schema], name=f"list_{path}",
                    summary=f"List {noun} records")
        async def list_lookups(
            parent_id: Optional[UUID] = Query(None, alias=parent_param),
            db: Session = Depends(get_db),
            current_user: CurrentUser = Depends(require_user)
        ):
            return LookupService(db, current_user.id, model).list(parent_id=parent_id)
    else:
        @router.get(f"/{path}", response_model=List[response_schema], name=f"list_{path}",
                    summary=f"List {noun} records")
        async def list_lookups(
            db: Session = Depends(get_db),
            current_user: CurrentUser = Depends(require_user)
        ):
            return LookupService(db, current_user.id, model).list()

    @router.post(
        f"/{path}",
        response_model=response_schema,
        status_code=status.HTTP_201_CREATED,
        name=f"create_{path}",
        summary=f"Create a {noun}",
        description=f"400 if the name is already used (\"{label} already exists\"); 404 if the parent is not the caller's."
    )
    async def create_lookup(
        payload: create_schema,
        db: Session = Depends(get_db),
        current_user: CurrentUser = Depends(require_user)
    ):
        parent_id = None
        if parent_param:
            parent_id = getattr(payload, LOOKUP_KINDS[model].parent_field)
        return LookupService(db, current_user.id, model).create(
            name=payload.name,
            description=payload.description,
            parent_id=parent_id,
        )

    @router.put(f"/{path}/{{lookup_id}}", response_model=response_schema, name=f"update_{path}",
                summary=f"Update a {noun}")
    async def update_lookup(
        lookup_id: UUID,
        payload: LookupUpdate,
        db: Session = Depends(get_db),
        current_user: CurrentUser = Depends(require_user)
    ):
        return LookupService(db, current_user.id, model).update(
            lookup_id,
            **payload.model_dump(exclude_unset=True)
        )

    @router.delete(
        f"/{path}/{{lookup_id}}",
        status_code=status.HTTP_204_NO_CONTENT,
        response_class=Response,
        name=f"delete_{path}",
        summary=f"Delete a {noun}",
        description="400 while any chat still references it."
    )
    async def delete_lookup(
        lookup_id: UUID,
        db: Session = Depends(get_db),
        current_user: CurrentUser = Depends(require_user)
    ):
        LookupService(db, current_user.id, model).delete(lookup_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)


add_lookup_routes("sources", Source)
add_lookup_routes("categories", Category)
add_lookup_routes(
    "subcategories",
    Subcategory,
    create_schema=SubcategoryCreate,
    response_schema=SubcategoryResponse,
    parent_param="categoryId",
)
add_lookup_routes("projects", Project)
add_lookup_routes(
    "phases",
    Phase,
    create_schema=PhaseCreate,
    response_schema=PhaseResponse,
    parent_param="projectId",
)
add_lookup_routes("formats", FileFormat)
