"""
Configuration management for the Documentation Map Parser.
Handles environment variables and pipeline settings.
"""
import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # Server settings
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json")  # json or console

    # HTTP fetch settings
    FETCH_TIMEOUT: float = float(os.getenv("FETCH_TIMEOUT", "10"))
    MAX_REDIRECTS: int = int(os.getenv("MAX_REDIRECTS", "3"))
    USER_AGENT: str = os.getenv("USER_AGENT", "DocMaps-Bot/1.0 (Documentation Parser)")

    # Headless browser settings (seconds)
    BROWSER_TIMEOUT: float = float(os.getenv("BROWSER_TIMEOUT", "45"))
    BROWSER_SETTLE_DELAY: float = float(os.getenv("BROWSER_SETTLE_DELAY", "3.0"))
    USE_BROWSER_FALLBACK: bool = os.getenv("USE_BROWSER_FALLBACK", "true").lower() == "true"

    # Cache
    CACHE_MAX_ENTRIES: int = int(os.getenv("CACHE_MAX_ENTRIES", "100"))
    CACHE_TTL_MS: int = int(os.getenv("CACHE_TTL_MS", "3600000"))

    # Parsing pipeline
    MIN_CONFIDENCE: float = float(os.getenv("MIN_CONFIDENCE", "0.3"))
    DEDUP_THRESHOLD: float = float(os.getenv("DEDUP_THRESHOLD", "0.85"))
    MAX_NODES: int = int(os.getenv("MAX_NODES", "50"))

    # Deep crawl
    CRAWL_MAX_PAGES: int = int(os.getenv("CRAWL_MAX_PAGES", "5"))
    CRAWL_DELAY: float = float(os.getenv("CRAWL_DELAY", "1.0"))  # seconds between section pages

    @classmethod
    def summary(cls) -> dict:
        """Return non-secret settings for startup logging."""
        return {
            "fetch_timeout": cls.FETCH_TIMEOUT,
            "max_redirects": cls.MAX_REDIRECTS,
            "browser_timeout": cls.BROWSER_TIMEOUT,
            "browser_fallback": cls.USE_BROWSER_FALLBACK,
            "cache_max_entries": cls.CACHE_MAX_ENTRIES,
            "cache_ttl_ms": cls.CACHE_TTL_MS,
            "min_confidence": cls.MIN_CONFIDENCE,
            "dedup_threshold": cls.DEDUP_THRESHOLD,
            "max_nodes": cls.MAX_NODES,
            "crawl_max_pages": cls.CRAWL_MAX_PAGES,
        }


config = Config()
