from __future__ import annotations

from fastapi import Request

from cms.config import Settings
from cms.services.categories import CategoryMap
from cms.services.og_cache import OgCache


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_category_map(request: Request) -> CategoryMap:
    return request.app.state.category_map


def get_og_cache(request: Request) -> OgCache:
    return request.app.state.og_cache
