"""Run the API server with ``python -m fieldscan``."""

import uvicorn

from fieldscan.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "fieldscan.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
