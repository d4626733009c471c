from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import signal
import sys

from fastapi import FastAPI
from dotenv import load_dotenv

from memory_processing.api.cleanup import router as cleanup_router, build_cleanup_processor
from memory_processing.api.memories import router as memories_router
from memory_processing.core.config import config
from memory_processing.core.errors import register_exception_handlers
from memory_processing.worker import manager as scheduler_manager


load_dotenv()
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.cleanup_worker_enabled and config.has_supabase_credentials():
        scheduler_manager.start_scheduler(build_cleanup_processor, config.cleanup_polling_interval)
    yield
    scheduler_manager.stop_scheduler()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(title="Memory Processing Service", lifespan=lifespan)

    register_exception_handlers(app)
    app.include_router(memories_router, prefix="/api", tags=["memories"])
    app.include_router(cleanup_router, prefix="/api", tags=["cleanup"])

    @app.get("/")
    async def root():
        return {"message": "Memory processing API is running"}

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    return app


app = create_app()


if __name__ == "__main__":
    def signal_handler(signum, frame):
        """Handle shutdown signals."""
        logging.info(f"Received signal {signum}, shutting down...")
        scheduler_manager.stop_scheduler()
        sys.exit(0)

    # Set up signal handlers
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    import uvicorn
    try:
        uvicorn.run(app, host="0.0.0.0", port=8001)
    except KeyboardInterrupt:
        logging.info("FastAPI server interrupted")
        scheduler_manager.stop_scheduler()
    finally:
        logging.info("Server shutdown complete")
