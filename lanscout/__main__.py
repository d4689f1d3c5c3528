"""
Run the lanscout server: python -m lanscout
"""

import uvicorn

from .config import settings


def main() -> None:
    uvicorn.run(
        "lanscout.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.effective_log_level.lower(),
    )


if __name__ == "__main__":
    main()
