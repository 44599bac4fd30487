"""
Product Domain Models

Represents a catalog product, its pricing plans and its gallery images.
Prices are stored as display strings (e.g. "₦4,500") exactly as the admin
typed them; numeric values are parsed on demand by the pricing service.

Author: TM3
Date: 2026-03-02
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime


PLAN_TYPES = ('shared', 'semi_private', 'private')


class PricingPlan(BaseModel):
    """
    Pricing plan for one subscription type of a product

    Fields:
        plan_type: shared, semi_private or private
        is_enabled: Whether customers can pick this plan
        price: Generic price string
        monthly_price: Price for the 1_month period
        yearly_price: Price for the 1_year period
    """
    id: Optional[str] = Field(None, description="Plan UUID")
    product_id: Optional[str] = Field(None, description="Owning product UUID")
    plan_type: str = Field(..., description="shared, semi_private or private")
    is_enabled: bool = Field(True, description="Whether the plan is offered")
    price: Optional[str] = None
    monthly_price: Optional[str] = None
    yearly_price: Optional[str] = None
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProductImage(BaseModel):
    """Gallery image of a product"""
    id: Optional[str] = None
    product_id: Optional[str] = None
    image_url: str
    alt_text: Optional[str] = None
    display_order: int = 0

    model_config = ConfigDict(from_attributes=True)


class Product(BaseModel):
    """
    Product domain model - a subscription the store resells

    Fields:
        id: Product UUID
        name: Product name (e.g. "Netflix Premium")
        slug: URL slug derived from the name
        description: Short description shown on cards
        detailed_description: Long description for the product page
        price: Current price string
        original_price: Strike-through price string
        category: Catalog category
        rating: 0 to 5
        features: Bullet list of features
        main_image_url / video_url / video_thumbnail_url: Media
        pricing_plans: Plans, loaded on demand
    """

    id: str = Field(..., description="Product UUID")
    name: str = Field(..., description="Product name")
    slug: Optional[str] = Field(None, description="URL slug")
    description: Optional[str] = Field(None, description="Short description")
    detailed_description: Optional[str] = None
    price: Optional[str] = Field(None, description="Price display string")
    original_price: Optional[str] = Field(None, description="Original price display string")
    category: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    features: List[str] = Field(default_factory=list)
    main_image_url: Optional[str] = None
    video_url: Optional[str] = None
    video_thumbnail_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    pricing_plans: List[PricingPlan] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    @property
    def enabled_plans(self) -> List[PricingPlan]:
        return [plan for plan in self.pricing_plans if plan.is_enabled]

    def to_dict(self) -> dict:
        """Convert to a JSON friendly dictionary"""
        data = self.model_dump()
        if self.created_at:
            data['created_at'] = self.created_at.isoformat()
        if self.updated_at:
            data['updated_at'] = self.updated_at.isoformat()
        return data


class ProductCreate(BaseModel):
    """Schema for creating a new product (slug is derived from name)"""
    name: str
    description: str
    original_price: str
    category: str
    price: Optional[str] = None
    detailed_description: Optional[str] = None
    rating: Optional[float] = 5.0
    features: List[str] = Field(default_factory=list)
    main_image_url: Optional[str] = None
    video_url: Optional[str] = None
    video_thumbnail_url: Optional[str] = None


class ProductUpdate(BaseModel):
    """Schema for updating an existing product (only sent fields change)"""
    name: Optional[str] = None
    description: Optional[str] = None
    original_price: Optional[str] = None
    category: Optional[str] = None
    price: Optional[str] = None
    detailed_description: Optional[str] = None
    rating: Optional[float] = None
    features: Optional[List[str]] = None
    main_image_url: Optional[str] = None
    video_url: Optional[str] = None
    video_thumbnail_url: Optional[str] = None
