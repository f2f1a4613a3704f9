
from typing import Optional
from pydantic import BaseModel, Field, UUID4
from datetime import date, datetime


class MovieBase(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    poster_url: Optional[str] = None
    release_date: Optional[date] = None
    duration_mins: Optional[int] = Field(None, gt=0)


# Movie: Create (admin POST /admin/movies)
class MovieCreate(MovieBase):
    pass


# Movie: Update (admin PATCH /admin/movies/{id})
class MovieUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    poster_url: Optional[str] = None
    release_date: Optional[date] = None
    duration_mins: Optional[int] = Field(None, gt=0)
    is_active: Optional[bool] = None


class Movie(MovieBase):
    id: UUID4
    is_active: bool = True
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Compact movie for booking/showtime responses
class MovieSummary(BaseModel):
    id: UUID4
    title: str
    poster_url: Optional[str] = None
    duration_mins: Optional[int] = None

    class Config:
        from_attributes = True
