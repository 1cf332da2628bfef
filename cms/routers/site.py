from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from cms.config import Settings
from cms.dependencies import get_category_map, get_settings
from cms.services.categories import CategoryMap


router = APIRouter()


@router.get("/config", name="site_config")
def site_config(
    settings: Settings = Depends(get_settings),
    category_map: CategoryMap = Depends(get_category_map),
) -> Dict[str, Any]:
    """Paths and category map the dashboard needs to build editor links."""
    return {
        "projectRoot": str(settings.project_root),
        "contentDir": settings.content_dir_name,
        "categoryMap": category_map.as_dict(),
    }
