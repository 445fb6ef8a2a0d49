"""
Cafeteria — Product schemas
"""
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["Iced Latte"])
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    category: str = Field("main", min_length=1, max_length=100)
    image_url: str | None = Field(None, max_length=500)
    stock_quantity: int = Field(0, ge=0)


class ProductUpdate(BaseModel):
    """Partial update: omitted fields are left alone. Only image_url may be cleared with null."""
    name: str | None = Field(None, min_length=1, max_length=255)
    price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    category: str | None = Field(None, min_length=1, max_length=100)
    image_url: str | None = Field(None, max_length=500)
    stock_quantity: int | None = Field(None, ge=0)

    @model_validator(mode="after")
    def reject_null_for_required_columns(self) -> "ProductUpdate":
        nulled = [
            field for field in ("name", "price", "category", "stock_quantity")
            if field in self.model_fields_set and getattr(self, field) is None
        ]
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self


class ProductResponse(BaseModel):
    id: int
    name: str
    price: Decimal
    category: str
    image_url: str | None
    stock_quantity: int

    model_config = {"from_attributes": True}
