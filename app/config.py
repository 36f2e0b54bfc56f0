from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    etherscan_api_key: str = ""
    explorer_url_overrides: dict[int, str] = {}
    rpc_url_overrides: dict[int, str] = {}

    explorer_timeout: float = 10.0
    rpc_timeout: float = 5.0
    explorer_max_retries: int = 3
    explorer_backoff_base: float = 1.0

    cache_ttl: float = 300.0
    cache_max_entries: int = 500
    fetch_multiplier: int = 3
    min_fetch_window: int = 100
    max_fetch_window: int = 10000
    max_page_size: int = 1000

    def explorer_url(self, chain_id: int, default: str) -> str:
        return self.explorer_url_overrides.get(chain_id) or default

    def rpc_url(self, chain_id: int, default: str) -> str:
        return self.rpc_url_overrides.get(chain_id) or default

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
