"""
The wiki web application.
"""

import datetime
import logging
import random
import secrets
import urllib.parse

import fastapi
import fastapi.responses

from wiki.antiforgery import Antiforgery, AntiforgeryValidationError
from wiki.cache import CacheBase, MemoryCache
from wiki.config import Config
from wiki.renderer import PageRenderer
from wiki.setup import trace_id_var
from wiki.stores.db import DbPageStore
from wiki.stores.types import PageStoreBase
from wiki.types import PageInput
from wiki.validator import PageInputValidator

logger = logging.getLogger(__name__)


def create_store(config: Config, cache: CacheBase | None = None) -> DbPageStore:
    """
    Create the page store for the configuration.
    """
    return DbPageStore(
        config.database,
        cache or MemoryCache(),
        cache_for=datetime.timedelta(minutes=config.cache_minutes),
    )


def create_app(
    config: Config,
    store: PageStoreBase | None = None,
    cache: CacheBase | None = None,
) -> fastapi.FastAPI:
    """
    Create the FastAPI app.
    """
    app = fastapi.FastAPI(title="Wiki", debug=config.debug)  # type: ignore

    if store is None:
        store = create_store(config, cache)

    secret_key = config.secret_key
    if not secret_key:
        logger.warning(
            "No secret_key in the configuration, using a random one. "
            "Open forms will stop working on restart."
        )
        secret_key = secrets.token_urlsafe(32)
    antiforgery = Antiforgery(
        secret_key,
        max_age=config.antiforgery_max_age,
        secure=config.server.secure_cookies,
    )
    renderer = PageRenderer()
    home_page = config.home_page

    @app.middleware("http")
    async def set_trace_id(request: fastapi.Request, call_next):
        def trace_id():
            return f"{random.getrandbits(64):016x}"

        trace_id = request.headers.get("x-trace-id") or trace_id()
        request.state.trace_id = trace_id
        trace_id_var.set(trace_id)
        response = await call_next(request)
        trace_id_var.set(None)
        return response

    @app.exception_handler(AntiforgeryValidationError)
    async def antiforgery_failed(
        request: fastapi.Request, exc: AntiforgeryValidationError
    ):
        logger.warning("Rejected post to %s: %s", request.url.path, exc)
        return fastapi.responses.PlainTextResponse(
            "Invalid anti-forgery token", status_code=400
        )

    def page_url(name: str) -> str:
        return "/" + urllib.parse.quote(name)

    async def editor_response(
        request: fastapi.Request,
        page_name: str,
        page_input: PageInput,
        validation=None,
    ) -> fastapi.responses.Response:
        tokens = antiforgery.get_tokens(request)
        html = renderer.render_editor(
            page_name,
            page_input,
            await store.list_all_pages(),
            tokens,
            validation,
        )
        response = fastapi.responses.HTMLResponse(content=html)
        antiforgery.store_tokens(response, tokens)
        return response

    @app.get("/")
    async def read_home_page():
        page = await store.get_page(home_page)
        if page is None:
            return fastapi.responses.RedirectResponse(
                url=page_url(home_page), status_code=302
            )

        html = renderer.render_page(
            page, await store.list_all_pages(), show_last_modified=False
        )
        return fastapi.responses.HTMLResponse(content=html)

    @app.get("/edit")
    async def edit_page(
        request: fastapi.Request,
        page_name: str = fastapi.Query("", alias="pageName"),
    ):
        logger.info("Editing page=%s", page_name)
        page = await store.get_page(page_name)
        if page is None:
            return fastapi.responses.PlainTextResponse(
                "Page not found", status_code=404
            )

        return await editor_response(
            request,
            page_name,
            PageInput(id=page.id, name=page_name, content=page.content),
        )

    @app.get("/{page_name}")
    async def read_page(request: fastapi.Request, page_name: str):
        page = await store.get_page(page_name)
        if page is None:
            logger.debug("Page not found page=%s, showing editor", page_name)
            return await editor_response(
                request, page_name, PageInput(name=page_name)
            )

        html = renderer.render_page(page, await store.list_all_pages())
        return fastapi.responses.HTMLResponse(content=html)

    @app.post("/{page_name}")
    async def save_page(request: fastapi.Request, page_name: str):
        await antiforgery.validate_request(request)

        form = await request.form()
        try:
            page_input = PageInput.from_form(form)
        except ValueError as e:
            logger.warning("Invalid form for page=%s: %s", page_name, e)
            return fastapi.responses.PlainTextResponse(
                "Invalid page id", status_code=400
            )

        # the home page can be posted to any path with its id
        edited_page_name = page_name
        if page_input.id is not None:
            home = await store.get_page(home_page)
            if home is not None and home.id == page_input.id:
                edited_page_name = home_page

        validation = PageInputValidator(edited_page_name, home_page).validate(
            page_input
        )
        if not validation.is_valid:
            logger.debug("Invalid input page=%s errors=%s", page_name, validation.errors)
            return await editor_response(request, page_name, page_input, validation)

        result = await store.save_page(page_input)
        if not result.ok:
            logger.error("Problem in saving page", exc_info=result.error)
            return fastapi.responses.PlainTextResponse(
                "Problem in saving page", status_code=500
            )

        return fastapi.responses.RedirectResponse(
            url=page_url(result.page.name), status_code=302
        )

    return app
