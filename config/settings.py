from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Ledger node (defaults target the public testnet fullnode)
    LEDGER_NODE_URL: str = "https://fullnode.testnet.aptoslabs.com/v1"
    LEDGER_READ_TIMEOUT_SECONDS: float = 10.0

    # Market program
    MODULE_ADDRESS: str = (
        "0x42c1c1c959c6739a3c17fdf5e6e22d85bb5e3834e47c5830330dbce0a0c486b7"
    )
    MODULE_NAME: str = "market"
    DEFAULT_MARKET_ID: str = (
        "0x6aaeea3d012eb3cc9431cc9266e974c627bccc4b200f0fc7bfbd9425cf364ace"
    )

    # Stake token (fungible asset metadata passed to create_market)
    STAKE_TOKEN_METADATA: str = (
        "0xd385ad597a4b14dbd4ad3ab0d1edeb973c2d987f53b9d591b6f0a6f2717a86d0"
    )
    STAKE_DECIMALS: int = 9

    # Finality wait for submitted transactions
    FINALITY_TIMEOUT_SECONDS: float = 30.0
    FINALITY_POLL_INTERVAL_SECONDS: float = 1.0

    # Wallet bridge: signs and submits on behalf of the connected wallet
    SIGNER_URL: str = "http://localhost:8787"

    # Off-chain campaign feed
    FEED_API_URL: str = "http://localhost:8080"
    FEED_CAMPAIGN: str = "stablecoin"

    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Markets kept in memory (least recently used evicted; home market pinned)
    MAX_CACHED_MARKETS: int = 256

    # App
    APP_NAME: str = "Info Meme Prediction Market"
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False


settings = Settings()
