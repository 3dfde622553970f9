import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from core.config import settings
from core.database import Base, engine
from core.errors import register_exception_handlers
from core.rate_limit import RateLimitMiddleware

# Importar rutas
from routers import user as user_router
from routers import project as project_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Static files are mounted at import time, so the directory must already exist
os.makedirs(os.path.join(settings.upload_dir, "projects"), exist_ok=True)


@asynccontextmanager
async def lifespan(application: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Environment: %s", settings.app_env)
    yield


# Crear la aplicación
app = FastAPI(
    title="Agent Gallery API",
    version="1.0.0",
    description="Community gallery of AI agent projects",
    lifespan=lifespan,
)

app.add_middleware(RateLimitMiddleware, prefix="/api/")

# Configurar CORS (outermost)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.client_url],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

register_exception_handlers(app)

# Incluir routers
app.include_router(user_router.router)
app.include_router(project_router.router)

# Uploaded images
app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")


@app.get("/api/health")
def health():
    return {
        "success": True,
        "message": "Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
