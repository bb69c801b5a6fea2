import uvicorn

from .config import config

if __name__ == "__main__":
    uvicorn.run("feedsync.server:app", port=config.PORT)
