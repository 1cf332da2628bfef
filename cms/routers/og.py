from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from cms.dependencies import get_og_cache
from cms.services.og_cache import OgCache, validate_og_url


router = APIRouter()


@router.get("/og-data", name="og_data")
def og_data(url: Optional[str] = Query(None), cache: OgCache = Depends(get_og_cache)) -> Dict[str, Any]:
    return cache.get(validate_og_url(url)).as_payload()


@router.get("/og-cache", name="og_cache")
def og_cache(cache: OgCache = Depends(get_og_cache)) -> Dict[str, Any]:
    return cache.dump()
