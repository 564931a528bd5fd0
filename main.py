import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskhub.config.settings import settings
from taskhub.database import Base, engine
from taskhub.routers import company, task, user
from taskhub.utils.errors import register_exception_handlers

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready")
    yield


app = FastAPI(title="Taskhub API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(company.router)
app.include_router(user.router)
app.include_router(task.router)


@app.get("/")
def root():
    return {"success": True, "message": "Taskhub API is running"}


@app.get("/health")
def health_check():
    return {"success": True, "status": "healthy"}
