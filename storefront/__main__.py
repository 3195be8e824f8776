"""Run the HTTP app: python -m storefront."""

import uvicorn

from storefront._logging import configure_logging
from storefront.api import create_app
from storefront.config import Settings


def main() -> None:
    settings = Settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        create_app(settings=settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


__all__ = ("main",)


if __name__ == "__main__":
    main()
