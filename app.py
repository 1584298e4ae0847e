"""Development entry point: ``flask --app app run`` or ``python app.py``."""

from src.school_attendance.school_attendance.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=bool(app.config.get("DEBUG")))
