from __future__ import annotations

import uvicorn

from src.config import Settings


def main() -> None:
    settings = Settings.from_env()
    uvicorn.run(
        "src.protocol.http.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
