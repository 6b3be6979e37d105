"""Key Administration API Routes - Route registration only."""

from fastapi import APIRouter

from hostsecrets.api.v1 import ADMIN_PREFIX
from hostsecrets.api.v1.admin import api

router = APIRouter()
router.include_router(api.router, prefix=ADMIN_PREFIX, tags=["key-admin"])
