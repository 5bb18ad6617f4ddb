from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Optional
from unitrack.config import Settings, get_settings
from unitrack.database import Base, build_engine, build_session_factory
from unitrack.errors import register_exception_handlers
from unitrack.responses import generate_request_id, respond
from unitrack.routers import applications, auth, meta, parent, requirements, students, universities
import unitrack.models  # noqa: F401  registers tables on Base.metadata
import logging

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Create database tables
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=app.state.engine)
    logger.info("Database tables created successfully")
    yield
    logger.info("Shutting down...")
    app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(
        title="UniTrack",
        description="University application tracking for students and parents",
        version=settings.API_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)

    allowed_origins = settings.allowed_origins
    logger.info(f"CORS allowed origins: {allowed_origins}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins if allowed_origins else ["*"],
        allow_credentials=bool(allowed_origins),
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    @app.middleware("http")
    async def assign_request_id(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    register_exception_handlers(app)

    # Include routers
    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(students.router, prefix="/api/student", tags=["student"])
    app.include_router(applications.router, prefix="/api/applications", tags=["applications"])
    app.include_router(requirements.router, prefix="/api/applications", tags=["requirements"])
    app.include_router(parent.router, prefix="/api/parent", tags=["parent"])
    app.include_router(universities.router, prefix="/api/universities", tags=["universities"])
    app.include_router(meta.router, prefix="/api/meta", tags=["meta"])

    @app.get("/")
    async def root(request: Request):
        return respond(request, {"message": "UniTrack API", "status": "running"})

    @app.get("/health")
    async def health(request: Request):
        return respond(request, {"status": "healthy"})

    return app


app = create_app()
