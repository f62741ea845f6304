from fastapi import APIRouter

from backend.app.api.v1.endpoints.stocks import router as stocks_router

router = APIRouter()
router.include_router(stocks_router, tags=["stocks"])
