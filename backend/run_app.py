import os
import sys

import uvicorn


def main():
    """Start the API with uvicorn. HOST, PORT and RELOAD come from the environment."""
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))
    reload = os.environ.get("RELOAD", "").lower() in ("1", "true", "yes")

    # Make "rev" importable when launched from the repository root
    sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

    uvicorn.run("rev.main:app", host=host, port=port, log_level="info", reload=reload)


if __name__ == "__main__":
    main()
