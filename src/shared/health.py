from time import perf_counter

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from src.shared.database import ping

router = APIRouter(tags=["Health"])


@router.get("/_health/db", status_code=status.HTTP_200_OK)
async def health_db(request: Request):
    session_factory = getattr(request.app.state, "session_factory", None)
    if session_factory is None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"ok": False, "checks": {"db": "not configured"}},
        )
    t0 = perf_counter()
    try:
        await ping(session_factory)
        dt_ms = int((perf_counter() - t0) * 1000)
        return {"ok": True, "checks": {"db_select_1_ms": dt_ms}}
    except Exception as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "ok": False,
                "checks": {"db": "SELECT 1 failed"},
                "error": type(e).__name__,
            },
        )


@router.get("/_health/redis")
async def health_redis(request: Request):
    client = getattr(request.app.state, "redis", None)
    if client is None:
        return {"service": "redis", "status": "disabled"}
    try:
        pong = await client.ping()
        return {"service": "redis", "status": "ok" if pong else "degraded"}
    except Exception:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"service": "redis", "status": "unavailable"},
        )
