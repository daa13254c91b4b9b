import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from actunews.cache import cache
from actunews.config import settings
from actunews.middleware import TimingMiddleware
from actunews.outbox import outbox
from actunews.routers import categories, metrics, posts, tags, users

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    try:
        await cache.connect()
    except Exception as exc:
        logger.warning("Starting without Redis cache: %s", exc)
    await outbox.start()
    logger.info("Actunews API started (env=%s)", settings.APP_ENV)
    yield
    # Deliver queued welcome mails before the process goes away.
    await outbox.stop(drain=True)
    await cache.disconnect()


app = FastAPI(
    title="Actunews API",
    description="News publishing backend: posts, categories, tags, comments and users",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(posts.router)
app.include_router(categories.router)
app.include_router(tags.router)
app.include_router(users.router)
app.include_router(metrics.router)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
