"""Run the server: `python -m notepin` or the `notepin` console script."""

import uvicorn

from notepin.config import settings


def main() -> None:
    uvicorn.run(
        "notepin.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
