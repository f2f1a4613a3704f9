from uuid import UUID
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from cineseat.db.session import get_db
from cineseat.api.deps import get_current_admin_user
from cineseat.models.user import User
from cineseat.models.movie import Movie
from cineseat.schemas.movie import MovieCreate, MovieUpdate, Movie as MovieSchema
from cineseat.schemas.common import PaginatedResponse, paginate

router = APIRouter(prefix="/admin/movies", tags=["Admin - Movies"])


@router.get("/", response_model=PaginatedResponse[MovieSchema])
def list_movies(
    is_active: Optional[bool] = True,
    search: Optional[str] = None,
    sort: Optional[str] = Query("newest", pattern="^(newest|oldest)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    query = db.query(Movie)
    if is_active is not None:
        query = query.filter(Movie.is_active == is_active)
    if search:
        query = query.filter(Movie.title.ilike(f"%{search}%"))
    order = Movie.created_at.asc() if sort == "oldest" else Movie.created_at.desc()
    return paginate(query.order_by(order), page, limit)


@router.get("/{id}", response_model=MovieSchema)
def get_movie(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    movie = db.query(Movie).filter(Movie.id == id).first()
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")
    return movie


@router.post("/", response_model=MovieSchema, status_code=status.HTTP_201_CREATED)
def create_movie(
    data: MovieCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    movie = Movie(**data.model_dump())
    db.add(movie)
    db.commit()
    db.refresh(movie)
    return movie


@router.patch("/{id}", response_model=MovieSchema)
def update_movie(
    id: UUID,
    data: MovieUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    movie = db.query(Movie).filter(Movie.id == id).first()
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(movie, field, value)

    db.commit()
    db.refresh(movie)
    return movie


@router.delete("/{id}", status_code=status.HTTP_200_OK)
def delete_movie(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """
    Soft-delete: the movie disappears from browsing. Showtimes and bookings
    are kept so issued tickets can still be scanned.
    """
    movie = db.query(Movie).filter(Movie.id == id, Movie.is_active == True).first()  # noqa: E712
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")

    movie.is_active = False
    db.commit()
    return {"id": str(id), "is_active": False}
