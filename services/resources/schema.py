"""API models for invoices, clients and expenses.

Each entity is one declarative pydantic model whose field names are the
storage column names; the camelCase API names come from the alias
generator. This is the only place the two namings meet.
"""

import datetime as dt
from collections.abc import Mapping
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from services.shared.money import Money


class ResourceModel(BaseModel):
    """Base for persisted resources.

    Optional text columns listed in ``blank_as_null`` are written as NULL
    when blank and read back as empty strings.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    blank_as_null: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="before")
    @classmethod
    def _null_text_to_blank(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        for field in cls.blank_as_null:
            for key in (field, to_camel(field)):
                if key in data and data[key] is None:
                    data[key] = ""
        return data

    def to_row(self) -> dict[str, Any]:
        """Column values for INSERT/UPDATE."""
        row = self.model_dump()
        for field in self.blank_as_null:
            if row.get(field) == "":
                row[field] = None
        return row


class InvoiceFields(ResourceModel):
    """Mutable invoice fields (PUT body)."""

    blank_as_null: ClassVar[tuple[str, ...]] = (
        "client_email",
        "project_details",
        "payment_link",
        "check_number",
    )

    invoice_number: str
    client_name: str
    client_email: str = ""
    project_details: str = ""
    payment_link: str = ""
    check_number: str = ""
    date: dt.date
    due_date: dt.date
    date_paid: dt.date | None = None
    total: Money
    status: str = "draft"
    items: list[Any] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _null_items_to_empty(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and data.get("items", []) is None:
            data = {**data, "items": []}
        return data


class Invoice(InvoiceFields):
    id: str


class ClientFields(ResourceModel):
    """Mutable client fields (PUT body).

    The legacy flat ``address`` is derived from the structured fields when
    the caller leaves it blank.
    """

    blank_as_null: ClassVar[tuple[str, ...]] = (
        "check_payor_name",
        "address",
        "address_line1",
        "address_line2",
        "city",
        "state",
        "zip",
    )

    company_name: str
    check_payor_name: str = ""
    email: str | None = None
    address: str = ""
    address_line1: str = ""
    address_line2: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""

    @model_validator(mode="after")
    def _derive_legacy_address(self) -> "ClientFields":
        if not self.address:
            parts = (self.address_line1, self.city, self.state)
            self.address = " ".join(part for part in parts if part)
        return self


class Client(ClientFields):
    id: str


class ExpenseFields(ResourceModel):
    """Mutable expense fields (PUT body)."""

    blank_as_null: ClassVar[tuple[str, ...]] = ("description",)

    date: dt.date
    payee: str
    category: str
    amount: Money
    description: str = ""


class Expense(ExpenseFields):
    id: str
