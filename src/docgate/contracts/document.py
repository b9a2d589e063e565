# src/docgate/contracts/document.py
"""Registry document payload models.

Field names match the registry's snake_case JSON keys, so model_dump()
produces the wire shape directly. Dates serialize as ISO-8601 (YYYY-MM-DD).
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from docgate.contracts.enums import CertificateType


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


class Product(BaseModel):
    """A single product line within a document.

    Exactly one unique identifier is sent. When both uit_code and uitu_code
    are given, uit_code wins and uitu_code is dropped. When neither is
    given, construction fails.
    """

    model_config = ConfigDict(extra="forbid")

    product_date: date
    tnved_code: str
    uit_code: str | None = None
    uitu_code: str | None = None
    certificate_document: CertificateType | None = None
    certificate_document_date: date | None = None
    certificate_document_number: str | None = None

    @model_validator(mode="after")
    def _select_unique_identifier(self) -> Product:
        if not _is_blank(self.uit_code):
            self.uitu_code = None
        elif not _is_blank(self.uitu_code):
            self.uit_code = None
        else:
            raise ValueError("Product requires a unique identifier: set uit_code or uitu_code")
        return self


class Document(BaseModel):
    """Document submitted to the registry.

    doc_id and reg_date are filled in automatically; description is
    derived from participant_inn.

    Example:
        doc = Document(
            owner_inn="7700000000",
            participant_inn="7700000000",
            producer_inn="7700000000",
            production_date=date(2024, 1, 15),
            production_type="OWN_PRODUCTION",
        )
        doc.add_product(Product(product_date=date(2024, 1, 15), tnved_code="6401", uit_code="010460..."))
    """

    model_config = ConfigDict(extra="forbid")

    doc_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    doc_status: str | None = None
    doc_type: str | None = None
    owner_inn: str = Field(min_length=1)
    participant_inn: str = Field(min_length=1)
    producer_inn: str = Field(min_length=1)
    production_date: date
    production_type: str | None = None
    products: list[Product] = Field(default_factory=list)
    reg_date: date = Field(default_factory=date.today)
    reg_number: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _drop_derived_fields(cls, data: Any) -> Any:
        # description is recomputed from participant_inn, so a dumped
        # document can be loaded back
        if isinstance(data, dict) and "description" in data:
            return {k: v for k, v in data.items() if k != "description"}
        return data

    @computed_field  # type: ignore[prop-decorator]
    @property
    def description(self) -> dict[str, str]:
        return {"participant_inn": self.participant_inn}

    def add_product(self, product: Product) -> None:
        """Append a product line."""
        self.products.append(product)
