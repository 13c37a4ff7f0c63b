"""One uniform CRUD router per subject type, all delegating to its pipeline."""

from typing import Any, Literal, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.errors import result_response
from app.db.session import get_db
from app.schemas.common import PageRequest
from app.schemas.results import Result, field_errors_from
from app.services.authz import Actor
from app.services.mutation_pipeline import MutationPipeline

PAGING_KEYS = frozenset({"page", "page_size", "sort_by", "sort_order", "search", "bank_id"})


def _filters_from(request: Request) -> dict[str, Any]:
    filters: dict[str, Any] = {}
    for key in request.query_params.keys():
        if key in PAGING_KEYS or key in filters:
            continue
        values = request.query_params.getlist(key)
        filters[key] = values if len(values) > 1 else values[0]
    return filters


def build_router(pipeline: MutationPipeline) -> APIRouter:
    definition = pipeline.definition
    label = definition.subject_type.value
    router = APIRouter(prefix=f"/{definition.path}", tags=[definition.path])

    @router.get("/visibility", summary=f"Field visibility for {label}")
    async def visibility(actor: Optional[Actor] = Depends(deps.get_current_actor)) -> JSONResponse:
        return result_response(pipeline.visibility(actor))

    @router.get("", summary=f"List {label} records")
    async def list_records(
        request: Request,
        page: int = Query(1, ge=1),
        page_size: Optional[int] = Query(None, ge=1),
        sort_by: Optional[str] = Query(None),
        sort_order: Literal["asc", "desc"] = Query("desc"),
        search: Optional[str] = Query(None, max_length=200),
        bank_id: Optional[str] = Query(None),
        actor: Optional[Actor] = Depends(deps.get_current_actor),
        db: AsyncSession = Depends(get_db),
    ) -> JSONResponse:
        params: dict[str, Any] = {
            "page": page,
            "sort_by": sort_by,
            "sort_order": sort_order,
            "search": search,
            "bank_id": bank_id,
        }
        if page_size is not None:
            params["page_size"] = page_size
        try:
            page_request = PageRequest(**params)
        except ValidationError as exc:
            return result_response(Result.invalid(field_errors_from(exc)))
        result = await pipeline.list(db, actor, _filters_from(request), page_request)
        return result_response(result)

    @router.get("/{record_id}", summary=f"Get a {label}")
    async def get_record(
        record_id: str,
        actor: Optional[Actor] = Depends(deps.get_current_actor),
        db: AsyncSession = Depends(get_db),
    ) -> JSONResponse:
        return result_response(await pipeline.get(db, actor, record_id))

    @router.post("", status_code=201, summary=f"Create a {label}")
    async def create_record(
        payload: dict[str, Any] = Body(...),
        actor: Optional[Actor] = Depends(deps.get_current_actor),
        db: AsyncSession = Depends(get_db),
    ) -> JSONResponse:
        return result_response(await pipeline.create(db, actor, payload), success_status=201)

    @router.patch("/{record_id}", summary=f"Update a {label}")
    async def update_record(
        record_id: str,
        payload: dict[str, Any] = Body(...),
        actor: Optional[Actor] = Depends(deps.get_current_actor),
        db: AsyncSession = Depends(get_db),
    ) -> JSONResponse:
        return result_response(await pipeline.update(db, actor, record_id, payload))

    @router.delete("/{record_id}", summary=f"Delete a {label}")
    async def delete_record(
        record_id: str,
        actor: Optional[Actor] = Depends(deps.get_current_actor),
        db: AsyncSession = Depends(get_db),
    ) -> JSONResponse:
        return result_response(await pipeline.remove(db, actor, record_id))

    return router
