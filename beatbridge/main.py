"""Entry: start the Beat Bridge host API."""
import logging
import uvicorn

from beatbridge.config import API_HOST, API_PORT

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    uvicorn.run(
        "beatbridge.api.app:app",
        host=API_HOST,
        port=API_PORT,
        reload=True,
    )
