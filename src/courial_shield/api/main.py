"""FastAPI application for the policy engine.

Run with:
    uvicorn courial_shield.api.main:app
"""

from fastapi import FastAPI

from courial_shield import __version__
from courial_shield.api.router import router


def create_app() -> FastAPI:
    """Build the FastAPI app with the policy router mounted."""
    app = FastAPI(title="Courial Shield Policy API", version=__version__)
    app.include_router(router)
    return app


app = create_app()
