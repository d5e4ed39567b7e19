"""
FastAPI app: JSON proxy routes for the signature database plus the search and import pages.
Run with: uvicorn sigdb.web:app --host 127.0.0.1 --port 8000
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import requests
from fastapi import Depends, FastAPI, Form, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Config, configure_logging, load_config
from .openchain_client import UpstreamError
from .service import FetchError, SignatureService

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

UPSTREAM_FAILED = {"error": "Failed to fetch from upstream API"}
INTERNAL_ERROR = {"error": "Internal server error"}


class ImportBody(BaseModel):
    data: str = ""


def get_service(request: Request) -> SignatureService:
    return request.app.state.service


def _proxy(label: str, call: Callable[[], Dict[str, Any]]) -> JSONResponse:
    try:
        return JSONResponse(call())
    except UpstreamError as exc:
        logger.error("%s API upstream error: HTTP %s", label, exc.status_code)
        return JSONResponse(UPSTREAM_FAILED, status_code=exc.status_code)
    except (requests.RequestException, ValueError) as exc:
        logger.error("%s API error: %s", label, exc)
        return JSONResponse(INTERNAL_ERROR, status_code=500)


def create_app(config: Optional[Config] = None, service: Optional[SignatureService] = None) -> FastAPI:
    cfg = config or load_config()
    configure_logging(cfg.log_level)

    app = FastAPI(
        title="Signature Database",
        description="Search and import Ethereum function, error and event signatures.",
    )
    app.state.config = cfg
    app.state.service = service or SignatureService(cfg)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and not request.url.path.startswith("/api/"):
            return templates.TemplateResponse(request, "not_found.html", {}, status_code=404)
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code)

    @app.get("/api/search")
    def api_search(
        query: Optional[str] = None,
        svc: SignatureService = Depends(get_service),
    ):
        if not query:
            return JSONResponse({"error": "Query parameter is required"}, status_code=400)
        return _proxy("Search", lambda: svc.client.search(query))

    @app.get("/api/lookup")
    def api_lookup(
        selector: Optional[str] = None,
        function: Optional[str] = None,
        event: Optional[str] = None,
        filter: Optional[bool] = None,
        svc: SignatureService = Depends(get_service),
    ):
        if selector:
            # A bare selector is looked up in both categories.
            function = event = selector
        if not function and not event:
            return JSONResponse(
                {"error": "Either selector, function or event parameter is required"},
                status_code=400,
            )
        return _proxy("Lookup", lambda: svc.client.lookup(function, event, filter))

    @app.get("/api/stats")
    def api_stats(svc: SignatureService = Depends(get_service)):
        return _proxy("Stats", svc.client.stats)

    @app.post("/api/import")
    def api_import(body: ImportBody, svc: SignatureService = Depends(get_service)):
        try:
            request = svc.prepare_import(body.data)
        except ValueError as exc:
            return JSONResponse({"error": str(exc)}, status_code=400)
        return _proxy("Import", lambda: svc.client.import_signatures(request.function, request.event))

    @app.get("/", response_class=HTMLResponse)
    def index(
        request: Request,
        q: Optional[str] = Query(None),
        svc: SignatureService = Depends(get_service),
    ):
        context: Dict[str, Any] = {
            "query": q or "",
            "results": [],
            "total": 0,
            "search_type": None,
            "error": None,
            "stats": _load_stats(svc),
            "limit": cfg.display_limit,
        }
        if q is not None and q.strip():
            try:
                response = svc.resolve_query(q)
            except (ValueError, FetchError) as exc:
                context["error"] = str(exc)
            else:
                context.update(
                    results=response["results"][: cfg.display_limit],
                    total=response["total"],
                    search_type=response["search_type"],
                )
        return templates.TemplateResponse(request, "index.html", context)

    @app.get("/import", response_class=HTMLResponse)
    def import_page(request: Request):
        return templates.TemplateResponse(request, "import.html", {"data": "", "error": None, "outcome": None})

    @app.post("/import", response_class=HTMLResponse)
    def import_submit(
        request: Request,
        data: str = Form(""),
        svc: SignatureService = Depends(get_service),
    ):
        context: Dict[str, Any] = {"data": data, "error": None, "outcome": None}
        try:
            context["outcome"] = svc.import_signatures(data)
        except (ValueError, FetchError) as exc:
            context["error"] = str(exc)
        return templates.TemplateResponse(request, "import.html", context)

    @app.get("/tools/abi", response_class=HTMLResponse)
    def abi_decoder(request: Request):
        return templates.TemplateResponse(request, "abi.html", {})

    return app


def _load_stats(svc: SignatureService):
    try:
        return svc.get_stats()
    except (ValueError, FetchError) as exc:
        logger.warning("Stats unavailable: %s", exc)
        return None


app = create_app()


if __name__ == "__main__":
    import uvicorn

    cfg = app.state.config
    uvicorn.run("sigdb.web:app", host=cfg.host, port=cfg.port, log_level=cfg.log_level.lower())
