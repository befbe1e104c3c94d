# batepapo/api/routes/root.py

from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "message": "Bate-papo chat room",
        "version": "1.0",
        "delivery": "polling",
        "endpoints": {
            "participants": "/participants",
            "messages": "/messages",
            "status": "/status",
            "health": "/health",
        },
    }
