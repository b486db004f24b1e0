import uvicorn
from fastapi import FastAPI

from revalidator import __version__
from revalidator.main.config import get_settings
from revalidator.server.cron_router import router as cron_router
from revalidator.server.lifespan import lifespan


def get_application():
    app = FastAPI(title="domain-revalidator", version=__version__, lifespan=lifespan)

    app.include_router(cron_router, prefix="/cron", tags=["cron"])

    @app.get("/healthz")
    async def get_healthz():
        return {"status": "HEALTHY"}

    return app


app = get_application()


def start():
    uvicorn.run(
        "revalidator.server.main:app",
        host="0.0.0.0",
        port=8123,
        reload=get_settings().dev,
    )
