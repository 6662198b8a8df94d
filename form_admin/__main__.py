"""Run the service with uvicorn: `python -m form_admin`."""

from __future__ import annotations

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "form_admin.main:create_app",
        factory=True,
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "8000")),
        log_config=None,
    )


if __name__ == "__main__":
    main()
