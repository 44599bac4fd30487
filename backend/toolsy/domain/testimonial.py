"""
Testimonial Domain Models

Author: TM3
Date: 2026-03-02
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Literal
from datetime import date as date_type, datetime


TestimonialType = Literal['text', 'video', 'image']


class Testimonial(BaseModel):
    """
    Customer testimonial shown on the home page and product pages

    Fields:
        type: text, video or image
        product_slug: When set, the testimonial belongs to one product page
        customer_photo_*: Avatar uploaded to Storage
        testimonial_content_photo_*: Screenshot/photo of the review itself
    """
    id: str
    name: str
    role: Optional[str] = None
    company: Optional[str] = None
    rating: int = Field(5, ge=1, le=5)
    content: str
    type: TestimonialType = 'text'
    video_url: Optional[str] = None
    image_url: Optional[str] = None
    product_slug: Optional[str] = None
    verified: bool = False
    date: Optional[date_type] = None
    customer_photo_url: Optional[str] = None
    customer_photo_path: Optional[str] = None
    testimonial_content_photo_url: Optional[str] = None
    testimonial_content_photo_path: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode='json')


class TestimonialCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    role: Optional[str] = None
    company: Optional[str] = None
    rating: int = Field(5, ge=1, le=5)
    content: str = Field(..., min_length=1)
    type: TestimonialType = 'text'
    video_url: Optional[str] = None
    image_url: Optional[str] = None
    product_slug: Optional[str] = None
    verified: bool = False
    date: Optional[date_type] = None
    customer_photo_url: Optional[str] = None
    customer_photo_path: Optional[str] = None
    testimonial_content_photo_url: Optional[str] = None
    testimonial_content_photo_path: Optional[str] = None


class TestimonialUpdate(BaseModel):
    name: Optional[str] = None
    role: Optional[str] = None
    company: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    content: Optional[str] = None
    type: Optional[TestimonialType] = None
    video_url: Optional[str] = None
    image_url: Optional[str] = None
    product_slug: Optional[str] = None
    verified: Optional[bool] = None
    date: Optional[date_type] = None
    customer_photo_url: Optional[str] = None
    customer_photo_path: Optional[str] = None
    testimonial_content_photo_url: Optional[str] = None
    testimonial_content_photo_path: Optional[str] = None
