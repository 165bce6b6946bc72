from fastapi import APIRouter

from iframe_proxy.app_proxy.route import router as proxy_router

router = APIRouter()


@router.get("/health")
async def health():
    return {"ok": True}


router.include_router(proxy_router)
