# api/balance.py

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from repos.database import AsyncSessionLocal
from services.order_service import OrderService, OrderValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/balance", tags=["balance"])


async def get_session():
    """Database session dependency"""
    async with AsyncSessionLocal() as session:
        yield session


@router.get("")
async def get_balance(period: str = "day", session=Depends(get_session)):
    """Sum of order amounts since the start of the local day or month"""
    try:
        balance = await OrderService(session).balance(period)
    except OrderValidationError as e:
        return JSONResponse({"success": False, "balance": 0, "error": str(e)}, status_code=400)
    except Exception as e:
        logger.error(f"❌ Balance calculation failed: {e}", exc_info=True)
        return JSONResponse({"success": False, "balance": 0}, status_code=500)
    return {"success": True, "balance": balance}
