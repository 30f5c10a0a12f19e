import os

import uvicorn

from hydrowatch.config import settings
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


if __name__ == "__main__":
    setup_logging(level=settings.log_level, job_name="hydrowatch-proxy")
    port = int(os.getenv("PORT", 3001))
    logger.info(f"HydroWatch India proxy starting on port {port}")

    uvicorn.run(
        "hydrowatch.main:app",
        host="0.0.0.0",
        port=port,
        reload=False,
    )
