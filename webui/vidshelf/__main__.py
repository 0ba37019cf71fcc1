# python -m vidshelf
import uvicorn

from .settings import HOST, PORT


def main():
    uvicorn.run(
        "vidshelf.main:app",
        host=HOST,
        port=PORT,
        log_level="info",
    )


if __name__ == "__main__":
    main()
