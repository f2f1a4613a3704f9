from uuid import UUID
from typing import List, Optional
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from cineseat.db.session import get_db
from cineseat.models.movie import Movie
from cineseat.models.showtime import Showtime
from cineseat.schemas.movie import Movie as MovieSchema
from cineseat.schemas.showtime import Showtime as ShowtimeSchema
from cineseat.schemas.common import PaginatedResponse, paginate
from cineseat.utils.showtimes import upcoming_filter

router = APIRouter(prefix="/movies", tags=["Movies"])


@router.get("/", response_model=PaginatedResponse[MovieSchema])
def list_movies(
    search: Optional[str] = Query(None, description="Case-insensitive title search"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Active movies, newest first (dashboard screen)."""
    query = db.query(Movie).filter(Movie.is_active == True)  # noqa: E712
    if search:
        query = query.filter(Movie.title.ilike(f"%{search}%"))
    return paginate(query.order_by(Movie.created_at.desc()), page, limit)


@router.get("/{movie_id}", response_model=MovieSchema)
def get_movie(movie_id: UUID, db: Session = Depends(get_db)):
    movie = db.query(Movie).filter(Movie.id == movie_id, Movie.is_active == True).first()  # noqa: E712
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")
    return movie


@router.get("/{movie_id}/showtimes", response_model=List[ShowtimeSchema])
def get_movie_showtimes(
    movie_id: UUID,
    date: Optional[date] = Query(None, description="Filter by specific date (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
):
    """
    Upcoming showtimes of a movie, soonest first (showtime picker screen).
    Showtimes that have already started are hidden; booking re-checks this
    anyway at purchase time.
    """
    movie = db.query(Movie).filter(Movie.id == movie_id, Movie.is_active == True).first()  # noqa: E712
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")

    query = db.query(Showtime).filter(Showtime.movie_id == movie_id, upcoming_filter())
    if date:
        query = query.filter(Showtime.show_date == date)

    return query.order_by(Showtime.show_date, Showtime.start_time).all()
