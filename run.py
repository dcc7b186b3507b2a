"""Entry point for the volunteer login service."""
from dotenv import load_dotenv

load_dotenv()

import uvicorn  # noqa: E402

from volunteer_portal.config import get_settings  # noqa: E402

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run("volunteer_portal.main:app", host=settings.HOST, port=settings.PORT)
