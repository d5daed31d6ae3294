import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.endpoints import auth, imports, public
from app.core.security import build_platform_user_cache
from app.core.settings import Settings, settings
from app.services.imports.preview import build_import_config
from app.services.supabase_rest import SupabaseRestClient
from app.services.templates import SupabaseTemplateStore


logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(app_settings: Settings = settings) -> FastAPI:
    app = FastAPI(title="Collections Admin Portal API")

    origins = app_settings.resolved_cors_origins()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Built once and shared by every request; nothing downstream reads the environment.
    supabase = SupabaseRestClient(
        url=app_settings.supabase_url or "",
        api_key=app_settings.supabase_rest_key or "",
        timeout_s=app_settings.supabase_timeout_s,
    )
    app.state.settings = app_settings
    app.state.supabase = supabase
    app.state.platform_user_cache = build_platform_user_cache(app_settings)
    app.state.import_config = build_import_config(app_settings, SupabaseTemplateStore(supabase))

    if not supabase.configured:
        logger.warning("app.startup.supabase_unconfigured url=%s", bool(app_settings.supabase_url))

    app.include_router(public.router, prefix="/api", tags=["public"])
    app.include_router(auth.router, prefix="/api", tags=["auth"])
    app.include_router(imports.router, prefix="/api", tags=["import"])

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()
