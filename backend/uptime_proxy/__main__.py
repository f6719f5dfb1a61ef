"""Run the proxy with uvicorn: ``python -m uptime_proxy``."""

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "uptime_proxy.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
