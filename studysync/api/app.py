"""
FastAPI app
"""

from importlib.metadata import version

from fastapi import FastAPI

from studysync.config.settings import Settings

from .dependencies import SETTINGS, logger
from .errors import add_exception_handlers
from .meetings import meeting_app
from .setup import example_setup
from .social import social_app


async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    log = logger()

    if settings.create_example_users:
        app.state.public_key = example_setup(settings=settings)
        await log.ainfo("app.example_setup", users=settings.example_user_names)

    if app.state.public_key is None:
        await log.awarning("app.no_public_key")

    yield

    await app.state.database_manager.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application. Settings default to those read from the
    environment.
    """
    settings = settings or SETTINGS()

    app = FastAPI(
        lifespan=lifespan,
        title="StudySync API",
        summary="Friendships, study groups and group meetings for StudySync users.",
        version=version("studysync"),
    )

    app.state.settings = settings
    app.state.database_manager = settings.async_manager()
    app.state.public_key = settings.read_public_key()

    app = add_exception_handlers(app)

    app.include_router(social_app, prefix="/social")
    app.include_router(meeting_app, prefix="/meetings")

    @app.get("/health", tags=["Health"])
    async def health() -> dict[str, str]:
        return {"status": "OK"}

    return app
