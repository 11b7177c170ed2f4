# poscart/main.py
from poscart.api import create_app
from poscart.data.database import init_db, engine
from poscart.data.seed import seed_products
from poscart.utils.logging import get_logger
import uvicorn

logger = get_logger(__name__)

logger.info(f"Initializing database at {engine.url}")

try:
    init_db()
    seed_products()
    logger.info("Database tables ready")
except Exception as e:
    logger.error(f"Failed to create tables: {e}")
    raise


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8000)
