"""CRUD routes for invoices, clients and expenses.

All three resources share one contract, so their routers are built from
the same factory around a ``ResourceRepository``.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.engine import Connection

from services.api.dependencies import get_connection
from services.resources.repository import (
    ResourceRepository,
    client_repository,
    expense_repository,
    invoice_repository,
)


def build_resource_router(name: str, repository: ResourceRepository[Any]) -> APIRouter:
    """Build GET/POST/PUT/DELETE routes for one resource.

    Args:
        name: URL segment and OpenAPI tag (e.g. 'invoices')
        repository: Repository for the resource table

    Returns:
        Router with the four CRUD endpoints
    """
    router = APIRouter(prefix=f"/{name}", tags=[name])
    model = repository.model
    update_model = repository.update_model
    not_found = f"{repository.label} not found"

    @router.get("", response_model=list[model])  # type: ignore[valid-type]
    def list_resources(conn: Connection = Depends(get_connection)) -> Any:
        """Return all rows in natural order."""
        return repository.list(conn)

    @router.post("", response_model=model, status_code=status.HTTP_201_CREATED)
    def create_resource(
        payload: model,  # type: ignore[valid-type]
        conn: Connection = Depends(get_connection),
    ) -> Any:
        """Insert a row with the caller-supplied id."""
        return repository.create(conn, payload)

    @router.put("/{resource_id}", response_model=model)
    def replace_resource(
        resource_id: str,
        payload: update_model,  # type: ignore[valid-type]
        conn: Connection = Depends(get_connection),
    ) -> Any:
        """Replace all mutable fields; 404 if the row does not exist."""
        updated = repository.replace(conn, resource_id, payload)
        if updated is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found)
        return updated

    @router.delete(
        "/{resource_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        response_class=Response,
    )
    def delete_resource(
        resource_id: str,
        conn: Connection = Depends(get_connection),
    ) -> Response:
        """Delete the row if present; always 204."""
        repository.delete(conn, resource_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


invoices_router = build_resource_router("invoices", invoice_repository)
clients_router = build_resource_router("clients", client_repository)
expenses_router = build_resource_router("expenses", expense_repository)
