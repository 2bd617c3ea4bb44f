"""
Application configuration.
Loads environment variables and defines constants for supported genes and drugs.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from backend root
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=_env_path)

SERVICE_NAME: str = "PharmaGuard API"
SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.0.0")

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# Comma-separated origin list; "*" keeps CORS fully open
CORS_ORIGINS: list[str] = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

# Supported pharmacogenomic genes
SUPPORTED_GENES: tuple[str, ...] = (
    "CYP2D6",
    "CYP2C19",
    "CYP2C9",
    "SLCO1B1",
    "TPMT",
    "DPYD",
)

# Supported drugs (canonical display names)
SUPPORTED_DRUGS: tuple[str, ...] = (
    "Codeine",
    "Warfarin",
    "Clopidogrel",
    "Simvastatin",
    "Azathioprine",
    "Fluorouracil",
)

# VCF upload limits
MAX_VCF_SIZE_MB: int = int(os.getenv("MAX_VCF_SIZE_MB", "5"))
MAX_VCF_SIZE_BYTES: int = MAX_VCF_SIZE_MB * 1024 * 1024
ALLOWED_VCF_EXTENSIONS: tuple[str, ...] = (".vcf",)
