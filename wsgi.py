"""WSGI entry point for the WealthTrack analytics API."""

import os
import sys

from wealthtrack import create_app

app = create_app()


def _port() -> int:
    # --port wins over PORT, which wins over the Flask default
    if len(sys.argv) > 2 and sys.argv[1] == "--port":
        return int(sys.argv[2])
    return int(os.environ.get("PORT", 5000))


if __name__ == "__main__":
    app.run(debug=app.config["DEBUG"], host="0.0.0.0", port=_port())
