import logging

import uvicorn

from classroom_layout.config import LOG_LEVEL, SERVER_HOST, SERVER_PORT


logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


if __name__ == "__main__":
    logging.getLogger(__name__).info("Classroom Layout API listening on %s:%s", SERVER_HOST, SERVER_PORT)
    uvicorn.run("classroom_layout.main_api:app", host=SERVER_HOST, port=SERVER_PORT, log_level=LOG_LEVEL.lower())
