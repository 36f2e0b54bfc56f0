from app.fetchers.explorer import (
    ExplorerBatch,
    ExplorerClient,
    ExplorerError,
    RateLimitedError,
)

__all__ = ["ExplorerBatch", "ExplorerClient", "ExplorerError", "RateLimitedError"]
