"""WSGI entry point for the property hub application."""

import os
import sys

from app import create_app
from app.database.base import create_tables

app = create_app()

if __name__ == "__main__":
    # `python wsgi.py --init-db` creates the schema and exits
    if "--init-db" in sys.argv:
        create_tables()
        app.logger.info("Database tables created")
        sys.exit(0)

    port = int(os.environ.get("PORT", 5000))
    if "--port" in sys.argv:
        index = sys.argv.index("--port")
        if index + 1 < len(sys.argv):
            port = int(sys.argv[index + 1])

    app.run(debug=app.config["DEBUG"], host="0.0.0.0", port=port)
