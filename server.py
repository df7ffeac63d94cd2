from __future__ import annotations

import logging
import os

import uvicorn
from dotenv import load_dotenv

# Load .env from the project dir (where server.py runs)
load_dotenv(os.path.join(os.path.dirname(__file__), ".env"))
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def main() -> None:
    port = int(os.environ.get("PORT", "8000"))
    logging.getLogger(__name__).info("Starting moderation API on port %d", port)
    uvicorn.run("app.main:app", host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
