import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import fyphub.models.relationships  # noqa: F401
from fyphub.api.router import api_router
from fyphub.cache.client import close_cache
from fyphub.core.config import settings
from fyphub.core.errors import register_exception_handlers
from fyphub.messaging.consumers import start_consumers
from fyphub.messaging.producers import close_kafka_producer, create_topics

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    consumers_task = None
    if not settings.TESTING:
        await create_topics()
        consumers_task = asyncio.create_task(start_consumers())
    logger.info(f"{settings.PROJECT_NAME} started ({settings.ENVIRONMENT})")
    yield
    if consumers_task:
        consumers_task.cancel()
    await close_kafka_producer()
    await close_cache()


app = FastAPI(title=settings.PROJECT_NAME, openapi_url=f"{settings.API_PREFIX}/openapi.json", lifespan=lifespan)

# Set CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/")
def root():
    return {"message": "Welcome to FYP Hub"}
