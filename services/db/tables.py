"""Table metadata for the invoicing schema.

Mirrors the Postgres tables the web client has always written to: UUID
primary keys supplied by the caller, DECIMAL(10, 2) money, DATE columns and
a JSONB line-item list on invoices.
"""

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    MetaData,
    Numeric,
    Table,
    Text,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB

metadata = MetaData()

JSONList = JSON().with_variant(JSONB(), "postgresql")

invoices = Table(
    "invoices",
    metadata,
    Column("id", Uuid(as_uuid=False), primary_key=True),
    Column("invoice_number", Text, nullable=False),
    Column("client_name", Text, nullable=False),
    Column("client_email", Text),
    Column("project_details", Text),
    Column("payment_link", Text),
    Column("check_number", Text),
    Column("date", Date, nullable=False),
    Column("due_date", Date, nullable=False),
    Column("date_paid", Date),
    Column("total", Numeric(10, 2), nullable=False),
    Column("status", Text, nullable=False, server_default="draft"),
    Column("items", JSONList),
    Column("created_at", DateTime, server_default=func.now()),
    Column("updated_at", DateTime, server_default=func.now()),
)

clients = Table(
    "clients",
    metadata,
    Column("id", Uuid(as_uuid=False), primary_key=True),
    Column("company_name", Text, nullable=False),
    Column("check_payor_name", Text),
    Column("email", Text),
    Column("address", Text),
    Column("address_line1", Text),
    Column("address_line2", Text),
    Column("city", Text),
    Column("state", Text),
    Column("zip", Text),
    Column("created_at", DateTime, server_default=func.now()),
    Column("updated_at", DateTime, server_default=func.now()),
)

expenses = Table(
    "expenses",
    metadata,
    Column("id", Uuid(as_uuid=False), primary_key=True),
    Column("date", Date, nullable=False),
    Column("payee", Text, nullable=False),
    Column("category", Text, nullable=False),
    Column("amount", Numeric(10, 2), nullable=False),
    Column("description", Text),
    Column("created_at", DateTime, server_default=func.now()),
)
