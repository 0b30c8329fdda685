from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from research_chat.api.routes import chat, reservation, tools
from research_chat.config import settings
from research_chat.services import database as db


@asynccontextmanager
async def lifespan(app: FastAPI):
    if db.db_available():
        await db.ensure_schema()
    yield
    await db.close_pool()


app = FastAPI(
    title="research-chat",
    description="Chat with web search, multi-step research and flight booking tools",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat.router)
app.include_router(tools.router)
app.include_router(reservation.router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": "research-chat"}
