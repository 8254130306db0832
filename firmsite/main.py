"""Development entrypoint for running the site locally.

Usage:
- FLASK_APP=firmsite.main:app flask run --reload --port 8000
- python -m firmsite.main
"""

from __future__ import annotations

from firmsite import create_app

app = create_app()

if __name__ == "__main__":
    # The content backend defaults to port 5000, so serve the site on 8000
    app.run(host="127.0.0.1", port=8000, debug=True)
