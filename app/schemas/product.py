from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Any, Optional


class CamelModel(BaseModel):
    """Serializes with camelCase keys; accepts camelCase or snake_case input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductInput(CamelModel):
    """
    Fields accepted when creating or updating a product.

    `name` and `stock` are deliberately loose here: the product service owns
    their validation so that the same rules apply to every caller.
    """
    name: Optional[Any] = Field(None, description="Product name (required, unique case-insensitively)")
    unit: Optional[str] = Field(None, description="Unit of measure")
    category: Optional[str] = Field(None, description="Category label")
    brand: Optional[str] = Field(None, description="Brand label")
    stock: Optional[Any] = Field(None, description="Stock quantity (non-negative number)")
    status: Optional[str] = Field(None, description="Availability label")
    image: Optional[str] = Field(None, description="Image reference")
    changed_by: Optional[str] = Field(None, description="Attribution for the stock log entry")


class ProductCreate(ProductInput):
    """Schema for creating a new product. Missing stock defaults to 0."""
    pass


class ProductUpdate(ProductInput):
    """Schema for updating a product. Name and stock are required."""
    pass


class ProductResponse(CamelModel):
    """Schema for product response including all fields."""
    id: int
    name: str
    unit: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    stock: int
    status: Optional[str] = None
    image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class DeleteResponse(CamelModel):
    """Confirmation of a delete request; returned whether or not a row existed."""
    deleted_id: int
