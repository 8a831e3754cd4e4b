from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ProductCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = None
    description: str = ""
    price: int = Field(..., gt=0)
    preview_image: str = ""
    detail_image: str = ""
    file_key: str = Field(..., min_length=1)


class ProductUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = None
    description: Optional[str] = None
    price: Optional[int] = Field(None, gt=0)
    preview_image: Optional[str] = None
    detail_image: Optional[str] = None
    file_key: Optional[str] = Field(None, min_length=1)


class ProductPublic(BaseModel):
    id: int
    title: str
    slug: str
    description: str
    price: int
    preview_image: str
    detail_image: str
    created_at: datetime

    class Config:
        from_attributes = True
