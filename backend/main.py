import logging

import uvicorn

from flashstudy import app
from flashstudy.config import settings


if __name__ == "__main__":
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="warning")
