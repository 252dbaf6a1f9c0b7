import logging

from fastapi import FastAPI
import uvicorn
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from core.config import settings
from db.database import create_db_and_tables
from routers.categories import router as categories_router
from routers.dashboard import router as dashboard_router
from routers.images import router as images_router
from routers.items import router as items_router

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_db_and_tables()
    yield


app = FastAPI(
    title="Service Center Stock Control API",
    description="Categories, items and low-stock alerts for a single service shop",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Image upload / serving routes
app.include_router(images_router, prefix="/images", tags=["images"])

# Inventory routes
app.include_router(dashboard_router, tags=["dashboard"])
app.include_router(categories_router, prefix="/categories", tags=["categories"])
app.include_router(items_router, prefix="/items", tags=["items"])

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
