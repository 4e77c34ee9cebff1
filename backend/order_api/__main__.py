import uvicorn

from order_api.config import load_settings
from order_api.main import create_app


def main():
    settings = load_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
