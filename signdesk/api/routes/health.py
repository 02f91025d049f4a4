from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ready")
def ready(request: Request) -> dict[str, object]:
    store = getattr(request.app.state, "document_store", None)
    return {"status": "ready" if store is not None else "starting", "documents": len(store.all()) if store else 0}
