"""Generic CRUD over one resource table.

Contract shared by invoices, clients and expenses:
- list returns every row in the resource's natural order
- create inserts the caller-supplied id and returns the canonical row
- replace overwrites all mutable columns, returning None if no row matched
- delete is unconditional and does not report whether a row existed
"""

import logging
from typing import Any, Generic, TypeVar

from sqlalchemy import Table, delete, func, insert, select, update
from sqlalchemy.engine import Connection, Row
from sqlalchemy.sql.elements import ColumnElement

from services.db.tables import clients, expenses, invoices
from services.resources.schema import (
    Client,
    ClientFields,
    Expense,
    ExpenseFields,
    Invoice,
    InvoiceFields,
    ResourceModel,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=ResourceModel)


class ResourceRepository(Generic[ModelT]):
    """CRUD operations for one table, mapped through one pydantic model."""

    def __init__(
        self,
        table: Table,
        model: type[ModelT],
        update_model: type[ResourceModel],
        order_by: ColumnElement,
        label: str,
    ) -> None:
        """Initialize repository.

        Args:
            table: Table holding the rows
            model: Full model (including id) used for POST bodies and rows
            update_model: Model of the mutable fields used for PUT bodies
            order_by: Natural ordering for list()
            label: Human-readable entity name used in messages
        """
        self.table = table
        self.model = model
        self.update_model = update_model
        self.order_by = order_by
        self.label = label

    def _to_model(self, row: Row) -> ModelT:
        return self.model.model_validate(dict(row._mapping))

    def _update_values(self, fields: ResourceModel) -> dict[str, Any]:
        values = fields.to_row()
        values.pop("id", None)
        if "updated_at" in self.table.c:
            values["updated_at"] = func.now()
        return values

    def list(self, conn: Connection) -> list[ModelT]:
        rows = conn.execute(select(self.table).order_by(self.order_by)).all()
        return [self._to_model(row) for row in rows]

    def create(self, conn: Connection, item: ModelT) -> ModelT:
        stmt = insert(self.table).values(**item.to_row()).returning(*self.table.c)
        row = conn.execute(stmt).one()
        conn.commit()
        created = self._to_model(row)
        logger.info(f"Created {self.label.lower()} {row.id}")
        return created

    def replace(self, conn: Connection, resource_id: str, fields: ResourceModel) -> ModelT | None:
        stmt = (
            update(self.table)
            .where(self.table.c.id == resource_id)
            .values(**self._update_values(fields))
            .returning(*self.table.c)
        )
        row = conn.execute(stmt).first()
        conn.commit()
        if row is None:
            return None
        logger.info(f"Updated {self.label.lower()} {resource_id}")
        return self._to_model(row)

    def delete(self, conn: Connection, resource_id: str) -> None:
        conn.execute(delete(self.table).where(self.table.c.id == resource_id))
        conn.commit()
        logger.info(f"Deleted {self.label.lower()} {resource_id}")


invoice_repository = ResourceRepository(
    invoices,
    Invoice,
    InvoiceFields,
    order_by=invoices.c.date.desc(),
    label="Invoice",
)
client_repository = ResourceRepository(
    clients,
    Client,
    ClientFields,
    order_by=clients.c.company_name.asc(),
    label="Client",
)
expense_repository = ResourceRepository(
    expenses,
    Expense,
    ExpenseFields,
    order_by=expenses.c.date.desc(),
    label="Expense",
)
