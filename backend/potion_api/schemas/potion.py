"""
Potion API — Potion Schemas
============================

What:  Pydantic models for potion payloads and responses.
Why:   Bodies of POST /potions and PUT /potions/{id} are validated here;
       invalid bodies become 400 responses with itemized field errors.
How:   Documents are schema-less in MongoDB, so output models allow extra
       keys and keep `_id` (rendered as a hex string) under its own name.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Ratings(BaseModel):
    """Tasting grades. strength and flavor are known; other grades pass through."""

    model_config = ConfigDict(extra="allow")

    strength: Optional[float] = Field(default=None, ge=0)
    flavor: Optional[float] = Field(default=None, ge=0)


class PotionCreate(BaseModel):
    """
    Body of POST /potions. name and effect are required.

    Optional fields left out are not stored, so no document carries a null
    vendor_id or rating that analytics would then group on.
    """

    name: str = Field(min_length=1, max_length=200, description="Potion name")
    effect: str = Field(min_length=1, description="What drinking it does")
    ingredients: List[str] = Field(default_factory=list)
    price: Optional[float] = Field(default=None, ge=0, description="Unit price")
    vendor_id: Optional[str] = Field(default=None, description="Seller identifier")
    categories: List[str] = Field(default_factory=list)
    ratings: Optional[Ratings] = None
    score: Optional[float] = Field(default=None, description="Overall score")


class PotionUpdate(BaseModel):
    """
    Body of PUT /potions/{id}.

    Every field is optional; only the fields the client sent with a
    non-null value are written.
    """

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    effect: Optional[str] = None
    ingredients: Optional[List[str]] = None
    price: Optional[float] = Field(default=None, ge=0)
    vendor_id: Optional[str] = None
    categories: Optional[List[str]] = None
    ratings: Optional[Ratings] = None
    score: Optional[float] = None


class PotionOut(BaseModel):
    """A stored potion as returned by the API."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    id: str = Field(alias="_id", description="Document id (hex ObjectId)")
    name: Optional[str] = None
    effect: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)
    price: Optional[float] = None
    vendor_id: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    ratings: Optional[Ratings] = None

    @field_validator("ingredients", "categories", mode="before")
    @classmethod
    def null_list_as_empty(cls, v):
        """Stored documents may hold null lists; they render as empty lists."""
        return [] if v is None else v


class PriceRangeResponse(BaseModel):
    potions: List[PotionOut]


class DistinctCategoriesResponse(BaseModel):
    count: int = Field(description="Number of unique categories in the catalog")


class RatioItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    ratio: Optional[float] = Field(description="strength / flavor, 0 when flavor is 0")


class GroupResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: Optional[str] = Field(alias="_id", description="Vendor id or category name")
    result: Optional[float] = None
