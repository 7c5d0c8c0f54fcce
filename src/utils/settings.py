"""Central configuration for the storefront client."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_url(name: str, default: str) -> str:
    # service clients join relative paths, so base URLs must end with a slash
    url = os.getenv(name, default)
    return url if url.endswith("/") else url + "/"


class Settings:
    """Central configuration for the storefront client."""

    # --- Backends ---
    PROFILE_URL: str = _env_url("CYBERMART_PROFILE_URL", "http://localhost:8001/")
    CATALOG_URL: str = _env_url("CYBERMART_CATALOG_URL", "http://localhost:8002/")
    ORDER_URL: str = _env_url("CYBERMART_ORDER_URL", "http://localhost:8003/")

    # --- Payment provider ---
    STRIPE_URL: str = _env_url("CYBERMART_STRIPE_URL", "https://api.stripe.com/v1/")
    STRIPE_PUBLISHABLE_KEY: str = os.getenv("CYBERMART_STRIPE_KEY", "")

    # --- Checkout ---
    ORDER_REDIRECT_DELAY: float = 2.0  # seconds on the success banner
    INITIAL_ORDER_STATUS: str = "pending"

    # --- UI ---
    APP_TITLE: str = "CyberMart"
    PAGE_SIZE: int = 5
    CATEGORIES: list[str] = [
        "Electronics",
        "Fashion",
        "Home and Kitchen",
        "Health and Personal Care",
        "Books and Stationery",
        "Sports and Outdoors",
        "Toys and Games",
        "Beauty and Cosmetics",
        "Automotive",
        "Jewelry and Accessories",
        "Groceries and Food",
        "Baby Products",
        "Pet Supplies",
        "Tools and Hardware",
        "Office Supplies",
        "Musical Instruments",
        "Furniture",
        "Art and Craft",
        "Industrial and Scientific",
        "Video Games and Consoles",
        "Music",
    ]

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    MIRROR_PATH: Path = Path(
        os.getenv("CYBERMART_MIRROR_PATH", str(BASE_DIR / "data" / "mirror.sqlite"))
    )
    LOG_FILE: Optional[Path] = (
        Path(os.environ["CYBERMART_LOG_FILE"])
        if os.getenv("CYBERMART_LOG_FILE")
        else None
    )
