from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from volunteer_portal.auth.session_store import build_session_store
from volunteer_portal.config import Settings, get_settings
from volunteer_portal.database import create_engine, create_sessionmaker, init_db
from volunteer_portal.logging_config import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.settings.AUTO_CREATE_TABLES:
        await init_db(app.state.engine)
    yield
    await app.state.engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL, json_format=settings.LOG_JSON)

    app = FastAPI(title="Volunteer Portal", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = create_engine(settings)
    app.state.sessionmaker = create_sessionmaker(app.state.engine)
    app.state.session_store = build_session_store(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from volunteer_portal.api.vol_login import router as vol_login_router

    app.include_router(vol_login_router)

    @app.get("/")
    async def root():
        return {"status": "ok"}

    return app


app = create_app()
