from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Base mainnet RPC
    base_rpc_url: str = "https://mainnet.base.org"
    base_chain_id: int = 8453
    rpc_max_concurrency: int = 8  # concurrent eth_call fan-out per scan

    # BaseScan-style explorer API
    basescan_api_url: str = "https://api.basescan.org/api"
    basescan_api_key: str = ""
    basescan_max_rps: float = 5.0  # free plan = 5 RPS

    # Pinion skills (price / wallet balance / tx decode), optional
    pinion_api_url: str = ""
    pinion_api_key: str = ""
    pinion_max_rps: float = 2.0

    # LLM analysis via OpenRouter
    openrouter_api_key: str = ""
    llm_model: str = "google/gemini-3-flash-preview"
    llm_max_tokens: int = 4096
    llm_timeout_sec: float = 45.0

    # Attestation ledger (submission needs both). NEVER LOG THE KEY
    deployer_private_key: str = ""
    pinioscan_contract_address: str = ""

    # Evidence limits
    holder_limit: int = 20
    transfer_limit: int = 50
    source_char_budget: int = 8000

    # Result cache
    cache_backend: str = "memory"  # "memory" or "redis"
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl_sec: int = 6 * 60 * 60
    cache_max_entries: int = 200
    cache_evict_batch: int = 50

    # Concurrent scans of the same address: "allow_duplicate" or "serialize_by_key"
    scan_concurrency_policy: str = "allow_duplicate"

    # HTTP API
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    cors_origins: str = "https://pinioscan.xyz,https://www.pinioscan.xyz,http://localhost:3000"
    rate_limit_enabled: bool = False  # per-IP limiter on scan endpoints
    scan_rate_limit: str = "5/hour"

    # Pay-per-scan skill endpoint (x402 manifest); payment is verified upstream
    skill_resource_url: str = "https://pinioscan.xyz/api/pinion-skill"
    skill_price_units: str = "100000"  # 0.10 USDC, 6 decimals
    skill_pay_to: str = ""  # empty -> zero address

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    log_dir: str = "logs"  # empty disables the file sink


settings = Settings()
