from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request):
    tracker = getattr(request.app.state, "tracker", None)
    return {
        "status": "ok",
        "realtime": bool(tracker and tracker.live),
    }
