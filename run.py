from __future__ import annotations

import os

import uvicorn

from quality_gate.logging_config import setup_logging


def main() -> None:
    setup_logging()
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    # log_config=None keeps uvicorn on the handlers installed above.
    uvicorn.run("quality_gate.main:app", host=host, port=port, workers=1, log_config=None)


if __name__ == "__main__":
    main()
