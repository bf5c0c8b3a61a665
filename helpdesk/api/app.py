import logging
from contextlib import AsyncExitStack, asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from helpdesk.config import Settings, configure_logging
from helpdesk.db.engine import build_engine
from helpdesk.db.seed import seed_demo_data
from helpdesk.db.store import EntityStore
from helpdesk.realtime.hub import BroadcastHub
from helpdesk.api.routers.dashboard import router as dashboard_router
from helpdesk.api.routers.kb_articles import router as kb_router
from helpdesk.api.routers.realtime import router as realtime_router
from helpdesk.api.routers.tickets import router as tickets_router
from helpdesk.api.routers.users import router as users_router
from helpdesk.mcp.server import build_mcp

logger = logging.getLogger("helpdesk_app")


async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Schema failures are client errors: 400 with one message per field
    errors = [
        {"field": ".".join(str(p) for p in err["loc"] if p != "body"), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": errors})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()

    store = EntityStore(build_engine(settings.database_url))
    hub = BroadcastHub(queue_size=settings.ws_send_queue_size)
    mcp = build_mcp(store, hub) if settings.enable_mcp else None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        configure_logging(settings.log_level)
        if settings.seed_demo_data:
            seed_demo_data(store)

        async with AsyncExitStack() as stack:
            # MCP session manager
            if mcp is not None:
                await stack.enter_async_context(mcp.session_manager.run())
            yield
        # Shutdown
        logger.info("shutdown, %s realtime client(s) still open", hub.connection_count)

    app = FastAPI(title="Helpdesk", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.hub = hub

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(dashboard_router)
    app.include_router(tickets_router)
    app.include_router(users_router)
    app.include_router(kb_router)
    app.include_router(realtime_router)

    # MCP accessible on http://localhost:8000/mcp
    if mcp is not None:
        app.mount("/mcp", mcp.streamable_http_app())

    return app


app = create_app()
