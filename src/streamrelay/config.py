"""
Environment configuration. Values come from the process environment,
optionally seeded from a local ``.env`` file.
"""
from __future__ import annotations
import os

from dotenv import load_dotenv

load_dotenv()


def get_list_from_env(name: str) -> list[str]:
    raw = os.getenv(name, "")
    return [s.strip() for s in raw.split(",") if s.strip()]


TMDB_API_KEY = os.getenv("TMDB_API_KEY")
TMDB_BASE_URL = os.getenv("TMDB_BASE_URL", "https://api.themoviedb.org/3")

OPENSUBTITLES_BASE_URL = os.getenv("OPENSUBTITLES_BASE_URL", "https://rest.opensubtitles.org/search")
OPENSUBTITLES_USER_AGENT = os.getenv("OPENSUBTITLES_USER_AGENT", "VLSub 0.10.2")

FETCH_TIMEOUT = int(os.getenv("FETCH_TIMEOUT", "12"))
HTTP_PROXY_URL = os.getenv("HTTP_PROXY_URL") or None

# Dotted module paths whose import registers scrapers with the engine
PROVIDER_MODULES = get_list_from_env("PROVIDER_MODULES")

# Source ids skipped by first-success search, on top of the built-in denylist
EXCLUDED_SOURCES = get_list_from_env("EXCLUDED_SOURCES")

AGGREGATION_MODE = os.getenv("AGGREGATION_MODE", "all").lower()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", "3002"))
