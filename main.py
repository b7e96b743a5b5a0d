import uvicorn

from marketplace.main import app


if __name__ == "__main__":
    uvicorn.run("marketplace.main:app", host="0.0.0.0", port=8000)


__all__ = ["app"]
