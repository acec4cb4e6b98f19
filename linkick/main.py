from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from linkick.core.config import settings
from linkick.core.logger import Logger
from linkick.services.batch_open import BatchOpener
from linkick.services.session import SessionController
from linkick.api import api_router

logger = Logger("Main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🚀 Starting LinKick...")
    app.state.session_controller = SessionController()
    app.state.batch_opener = BatchOpener()

    yield

    # Shutdown
    logger.info("Shutting down...")
    await app.state.session_controller.stop()


app = FastAPI(lifespan=lifespan, title="LinKick API", version="1.0.0")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router (if enabled)
if settings.API_ENABLED:
    app.include_router(api_router)


@app.get("/health")
async def health_check(request: Request):
    controller = getattr(request.app.state, "session_controller", None)
    return {
        "status": "ok",
        "session": controller.state.value if controller else "IDLE",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("linkick.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=True)
