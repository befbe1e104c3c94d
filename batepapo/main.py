# batepapo/main.py

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from batepapo.core import state
from batepapo.core.config import settings
from batepapo.core.errors import ChatError
from batepapo.core.logging import setup_logging, get_logger
from batepapo.api.routes import root, health, participants, messages, status

# Configure logging first
setup_logging()
logger = get_logger(__name__)

# FastAPI app
app = FastAPI(title="Bate-papo - Chat Room")

# CORS (browser clients poll from any origin)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# REST routes
app.include_router(root.router)
app.include_router(health.router)
app.include_router(participants.router)
app.include_router(messages.router)
app.include_router(status.router)


@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.public_message})


@app.on_event("startup")
async def startup_event():
    # Tests may install their own store before the app starts
    if state.chat_room is None:
        state.init_state()

    logger.info("🚀 Application starting - storage backend: %s", state.store.name)
    await state.store.connect()
    state.sweeper.start()

@app.on_event("shutdown")
async def on_shutdown():
    await state.sweeper.stop()
    await state.store.close()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("batepapo.main:app", host=settings.HOST, port=settings.PORT)
