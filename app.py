"""Entry point: ``python app.py`` for the dev server, ``flask --app app ems <command>`` for maintenance."""

import os

from src.employee_management.employee_management.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "5000")), debug=app.config["DEBUG"])
