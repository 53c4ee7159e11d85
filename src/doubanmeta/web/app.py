"""FastAPI application serving douban records as JSON.

Route handlers are async and run the blocking service calls on worker
threads. The service (and with it the one result cache) is created in the
app lifespan unless a test passes its own.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response

from doubanmeta import config
from doubanmeta.cache import ResultCache
from doubanmeta.errors import StructuralAnchorMissing, UpstreamError
from doubanmeta.scrapers.client import DoubanClient
from doubanmeta.service import DoubanService

logger = logging.getLogger(__name__)

MAX_BOOK_SEARCH_COUNT = 20

INDEX_HTML = """
接口列表：<br/>
/movies?q={movie_name}<br/>
/movies?q={movie_name}&type=full<br/>
/movies/{sid}<br/>
/movies/{sid}/celebrities<br/>
/celebrities/{cid}<br/>
/photo/{sid}<br/>
/v2/book/search?q={book_name}<br/>
/v2/book/id/{sid}<br/>
/v2/book/isbn/{isbn}<br/>
/proxy?url={image_url}<br/>
"""


def build_service() -> DoubanService:
    """Service wired from :mod:`doubanmeta.config`."""
    return DoubanService(
        client=DoubanClient(cookie=config.DOUBAN_COOKIE),
        cache=ResultCache(max_entries=config.CACHE_SIZE, ttl=config.CACHE_TTL),
        search_limit=config.SEARCH_LIMIT,
        image_host=config.IMAGE_HOST,
        image_proxy=config.IMAGE_PROXY,
    )


def create_app(service: DoubanService | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = service is None
        if owned:
            app.state.service = build_service()
            logger.info("Service started (cache: %d entries, %ss)", config.CACHE_SIZE, config.CACHE_TTL)
        yield
        if owned:
            app.state.service.close()

    app = FastAPI(title="doubanmeta", lifespan=lifespan)
    if service is not None:
        app.state.service = service

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    @app.exception_handler(UpstreamError)
    async def upstream_error(request: Request, exc: UpstreamError):
        status = 404 if exc.status == 404 else 502
        return JSONResponse(status_code=status, content={"message": str(exc)})

    @app.exception_handler(StructuralAnchorMissing)
    async def anchor_missing(request: Request, exc: StructuralAnchorMissing):
        logger.error("Unexpected page layout: %s", exc)
        return JSONResponse(status_code=500, content={"message": str(exc)})

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    @app.get("/", response_class=HTMLResponse)
    async def index():
        return HTMLResponse(INDEX_HTML)

    @app.get("/movies")
    async def movies(
        request: Request,
        q: str = "",
        type: str = "",
        s: str = "",
        count: int = 0,
    ):
        svc: DoubanService = request.app.state.service
        if not q:
            return []
        if type == "full":
            found = await asyncio.to_thread(svc.search_movies_full, q, count, s)
        else:
            found = await asyncio.to_thread(svc.search_movies, q, count, s)
        return [movie.to_dict() for movie in found]

    @app.get("/movies/{sid}")
    async def movie(request: Request, sid: str, s: str = ""):
        svc: DoubanService = request.app.state.service
        return (await asyncio.to_thread(svc.get_movie, sid, s)).to_dict()

    @app.get("/movies/{sid}/celebrities")
    async def movie_celebrities(request: Request, sid: str):
        svc: DoubanService = request.app.state.service
        celebrities = await asyncio.to_thread(svc.get_celebrities, sid)
        return [celebrity.to_dict() for celebrity in celebrities]

    @app.get("/celebrities/{cid}")
    async def celebrity(request: Request, cid: str):
        svc: DoubanService = request.app.state.service
        return (await asyncio.to_thread(svc.get_celebrity, cid)).to_dict()

    @app.get("/photo/{sid}")
    async def photos(request: Request, sid: str):
        svc: DoubanService = request.app.state.service
        return [photo.to_dict() for photo in await asyncio.to_thread(svc.get_photos, sid)]

    @app.get("/v2/book/search")
    async def book_search(request: Request, q: str = "", count: int = Query(2)):
        svc: DoubanService = request.app.state.service
        if not q:
            return []
        if count > MAX_BOOK_SEARCH_COUNT:
            return JSONResponse(status_code=400, content={"message": "count不能大于20"})
        return (await asyncio.to_thread(svc.search_books, q, count)).to_dict()

    @app.get("/v2/book/id/{sid}")
    async def book(request: Request, sid: str):
        svc: DoubanService = request.app.state.service
        return (await asyncio.to_thread(svc.get_book, sid)).to_dict()

    @app.get("/v2/book/isbn/{isbn}")
    async def book_by_isbn(request: Request, isbn: str):
        svc: DoubanService = request.app.state.service
        return (await asyncio.to_thread(svc.get_book_by_isbn, isbn)).to_dict()

    @app.get("/proxy")
    async def proxy(request: Request, url: str):
        svc: DoubanService = request.app.state.service
        upstream = await asyncio.to_thread(svc.proxy_image, url)
        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            media_type=upstream.headers.get("content-type"),
        )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
