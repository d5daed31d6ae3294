from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.security import get_app_settings
from app.core.settings import Settings
from app.services.imports.parser import CSV_MIME_TYPES, SPREADSHEET_EXTENSIONS, SPREADSHEET_MIME_TYPES


router = APIRouter()


@router.get("/public-config")
async def public_config(app_settings: Settings = Depends(get_app_settings)) -> dict:
    return {
        "supabaseUrl": app_settings.supabase_url or "",
        "supabaseAnonKey": app_settings.supabase_anon_key or "",
        "importAcceptedTypes": sorted(CSV_MIME_TYPES | SPREADSHEET_MIME_TYPES),
        "importAcceptedExtensions": [".csv", *SPREADSHEET_EXTENSIONS],
        "importMaxUploadBytes": app_settings.import_max_upload_bytes,
    }
