# Console entry point for the API process
import uvicorn

from brokerage_service.app.config import settings


def run() -> None:
    uvicorn.run(
        "brokerage_service.app.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        log_config=None,  # keep the JSON logging set up by observability
    )


if __name__ == "__main__":
    run()
