from fastapi import APIRouter

from .features.rsvp.router import router as rsvp_router

router = APIRouter()

router.include_router(rsvp_router)
