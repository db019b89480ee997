from __future__ import annotations

from storyforge.app import create_app
from storyforge.config import settings

app = create_app(settings)

if __name__ == "__main__":
    app.run(
        host=settings.FLASK_HOST,
        port=settings.FLASK_PORT,
        debug=settings.FLASK_DEBUG,
    )
