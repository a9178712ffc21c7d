"""Health check routes."""
from fastapi import APIRouter, HTTPException, Request

from data.store import StoreError

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Basic health check."""
    slack = request.app.state.slack
    return {
        "status": "ok",
        "service": "slackbus",
        "authed": bool(slack.token),
    }


@router.get("/health/db")
async def health_db(request: Request):
    """Check key-value store connection."""
    store = request.app.state.store
    if store is None:
        raise HTTPException(status_code=503, detail="Store not connected")
    try:
        await store.get("__health__")
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Database error: {str(e)}")
    return {
        "status": "ok",
        "database": "connected",
        "collection": store.collection,
    }
