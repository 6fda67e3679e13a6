from .app import create_app
from .common.config import settings

app = create_app()


def run() -> None:
    """Console entry point: serve the API with Quart's built-in server."""
    app.run(host=settings.APP_HOST, port=settings.APP_PORT)


if __name__ == "__main__":
    run()
