"""Run the FastAPI server (dev helper)."""
from __future__ import annotations

import uvicorn

from posemirror.core.config import get_settings
from posemirror.core.logging_config import setup_logging


def main() -> None:
    s = get_settings()
    setup_logging(s.log_level)
    uvicorn.run("posemirror.api.main:app", host=s.api_host, port=s.api_port, reload=False)


if __name__ == "__main__":
    main()
