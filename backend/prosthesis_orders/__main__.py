"""Run the backend with uvicorn on the configured HOST/PORT."""

import uvicorn

from prosthesis_orders.config import settings


def main() -> None:
    uvicorn.run(
        "prosthesis_orders.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
