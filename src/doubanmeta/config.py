import os

from dotenv import load_dotenv

load_dotenv()

# Listen address (overridable with --host / --port)
HOST: str = os.environ.get("DOUBAN_API_HOST", "0.0.0.0")
PORT: int = int(os.environ.get("DOUBAN_API_PORT", "8080"))

# Default number of movie search results when the caller sends no count
DEFAULT_SEARCH_LIMIT = 3
SEARCH_LIMIT: int = int(os.environ.get("DOUBAN_API_LIMIT_SIZE", str(DEFAULT_SEARCH_LIMIT))) or DEFAULT_SEARCH_LIMIT

# Raw "name=value; name2=value2" cookie string copied from a browser session
DOUBAN_COOKIE: str = os.environ.get("DOUBAN_COOKIE", "")

# Image rewriting: mirror host for hot-link protection, optional proxy base
IMAGE_HOST: str = os.environ.get("DOUBAN_IMG_HOST", "img2.doubanio.com")
IMAGE_PROXY: str = os.environ.get("DOUBAN_IMG_PROXY", "")

# Result cache
CACHE_SIZE: int = int(os.environ.get("DOUBAN_CACHE_SIZE", "100"))
CACHE_TTL: int = int(os.environ.get("DOUBAN_CACHE_TTL", "600"))  # seconds

DEBUG: bool = os.environ.get("DOUBAN_DEBUG", "").lower() in ("1", "true", "yes")
