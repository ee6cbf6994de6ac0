import uvicorn

from odysea.core.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("odysea.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
