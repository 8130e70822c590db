from fastapi import APIRouter

from app.api.admin.table_modules.router import router as table_router

router = APIRouter()
router.include_router(table_router, tags=["AdminTables"])
