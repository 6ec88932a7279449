from fastapi import APIRouter, Request
from storefront.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/api/health", tags=["Health"])

@router.get("")
def health_root():
    return {"message": "Success"}

@router.get("/rate-limit")
def health_rate_limit(request: Request):
    return rate_limit_health_info(request)
