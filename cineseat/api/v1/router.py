from fastapi import APIRouter

# Auth
from cineseat.api.v1.public.auth import router as auth_router

# Public: discovery, showtimes, seat map
from cineseat.api.v1.public.movies import router as public_movies_router
from cineseat.api.v1.public.showtimes import router as public_showtimes_router

# Public: bookings
from cineseat.api.v1.public.bookings import router as bookings_router

# Public: user profile
from cineseat.api.v1.public.me import router as me_router

# Admin
from cineseat.api.v1.admin.movies import router as admin_movies_router
from cineseat.api.v1.admin.showtimes import router as admin_showtimes_router
from cineseat.api.v1.admin.bookings import router as admin_bookings_router

api_router = APIRouter()

# --- Auth ---
api_router.include_router(auth_router)

# --- Public: discovery ---
api_router.include_router(public_movies_router)
api_router.include_router(public_showtimes_router)

# --- Public: bookings ---
api_router.include_router(bookings_router)

# --- Public: profile ---
api_router.include_router(me_router)

# --- Admin ---
api_router.include_router(admin_movies_router)
api_router.include_router(admin_showtimes_router)
api_router.include_router(admin_bookings_router)
