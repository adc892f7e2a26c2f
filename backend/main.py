import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from backend.core import config
from backend.database import build_engine, build_session_factory, initialize_database
from backend.models import appointment, counselor, thought_diary, user, workout  # noqa: F401
from backend.routes import (
    appointment_routes,
    auth_routes,
    counselor_routes,
    diary_routes,
    exercise_routes,
    workout_routes,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)

logger = logging.getLogger(__name__)


def create_app(engine: Engine | None = None) -> FastAPI:
    config.validate_runtime_config()

    engine = engine or build_engine()

    app = FastAPI(title='Student Wellness API')
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    @app.on_event('startup')
    def initialize_store() -> None:
        try:
            initialize_database(app.state.engine)
        except SQLAlchemyError:
            logger.exception('Database initialization failed. Check DATABASE_URL and Postgres credentials.')
            raise

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning('Validation error for %s: %s', request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={'detail': jsonable_encoder(exc.errors())},
        )

    @app.get('/')
    def root():
        return {'status': 'Student Wellness API Running'}

    app.include_router(auth_routes.router)
    app.include_router(appointment_routes.router)
    app.include_router(counselor_routes.router)
    app.include_router(diary_routes.router)
    app.include_router(workout_routes.router)
    app.include_router(exercise_routes.router)

    return app


app = create_app()
