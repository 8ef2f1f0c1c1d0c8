"""
Entry point for the User Registry backend
"""

import sys
import os
import logging
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Add src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from user_registry.app import create_app
from user_registry.config.settings import ENV, PORT, DB_HOST, DB_PORT, DB_NAME

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    import uvicorn

    app = create_app()
    logger.info(f"Starting User Registry on port {PORT}")
    logger.info(f"Environment: {ENV}")
    logger.info(f"Database: {DB_HOST}:{DB_PORT}/{DB_NAME}")
    # uvicorn turns SIGINT and SIGTERM into a lifespan shutdown, which closes the pool
    uvicorn.run(app, host="0.0.0.0", port=PORT)


if __name__ == "__main__":
    main()
