import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from skinsheet.service import ItemsService

logger = structlog.get_logger(__name__)

router = APIRouter()


def get_service(request: Request) -> ItemsService:
    return request.app.state.service


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/api/items")
async def items(
    include_price: str | None = Query(None),
    service: ItemsService = Depends(get_service),
):
    try:
        return await service.get_items(include_price=include_price == "1")
    except Exception as e:
        logger.error("api_items_failed", error=str(e), error_type=type(e).__name__)
        return JSONResponse(status_code=500, content={"error": str(e)})
