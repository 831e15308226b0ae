"""
Configuration settings for the Hypervisor vault API

Loads environment variables and provides application configuration.
"""
import os
from typing import List
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings:
    """Application settings"""

    # API Configuration
    API_VERSION: str = "0.1.0"
    API_TITLE: str = "Hypervisor Vault API"
    API_DESCRIPTION: str = "Active liquidity management vault over a Uniswap V3 style pool"

    # CORS Configuration
    CORS_ORIGINS: List[str] = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000"
    ).split(",")

    # Server Configuration
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 8000))
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Demo pool seeded on startup
    TOKEN0: str = os.getenv("DEMO_TOKEN0", "0x1000000000000000000000000000000000000001")
    TOKEN1: str = os.getenv("DEMO_TOKEN1", "0x2000000000000000000000000000000000000002")
    POOL_FEE: int = int(os.getenv("DEMO_POOL_FEE", 3000))
    POOL_INITIAL_TICK: int = int(os.getenv("DEMO_POOL_INITIAL_TICK", 0))

    # Demo vault
    VAULT_ADDRESS: str = os.getenv("DEMO_VAULT_ADDRESS", "0xfeed000000000000000000000000000000000001")
    VAULT_OWNER: str = os.getenv("DEMO_VAULT_OWNER", "owner")

    # Accounts funded (and approved to the vault) on startup
    DEMO_ACCOUNTS: List[str] = os.getenv("DEMO_ACCOUNTS", "alice,bob").split(",")
    DEMO_BALANCE: int = int(os.getenv("DEMO_BALANCE", 10 ** 24))


# Create global settings instance
settings = Settings()
