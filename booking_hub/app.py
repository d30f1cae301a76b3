"""FastAPI application: webhook endpoint for interview bookings.

Endpoints:

  POST /book-email   Voice-agent webhook: invite + confirmation email

Every other POST path answers 404; any other method on any path answers 405.

The booking flow:
  1. Webhook posts {email, interview_date, interview_time} (Pacific wall clock)
  2. Orchestrator resolves the instant, asks ApyHub for an ICS file
  3. SendGrid delivers the confirmation with the ICS attached
  4. A Slack notification is spawned in the background; the response
     is returned without waiting for it
"""

from __future__ import annotations

from dotenv import load_dotenv
load_dotenv()

import logging
from typing import Optional

# Configure root logger early so all app loggers have a handler and are
# visible when run via `uvicorn booking_hub.app:app`.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)-20s %(levelname)-7s %(message)s",
)

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from booking_hub.auth import require_webhook_signature
from booking_hub.config import settings
from booking_hub.orchestrator import BookingOrchestrator

log = logging.getLogger("booking_hub.app")

_ALL_METHODS = ["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS", "POST"]


def create_app(orchestrator: Optional[BookingOrchestrator] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Booking Hub",
        description="Interview booking webhook: ICS invite by email plus Slack notifications",
        version="0.1.0",
    )

    for warning in settings.validate_startup():
        log.warning(warning)

    app.state.orchestrator = orchestrator or BookingOrchestrator.from_settings(settings)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse({"success": False, "error": exc.detail}, status_code=exc.status_code)

    # ── Booking webhook ────────────────────────────────────────

    @app.post("/book-email", dependencies=[Depends(require_webhook_signature)])
    async def book_email(request: Request) -> JSONResponse:
        """Run the booking pipeline and answer with {success, message|error}."""
        log.info("Handling /book-email request...")
        body = await request.body()
        outcome = await request.app.state.orchestrator.handle(body)
        return JSONResponse(
            outcome.response.model_dump(exclude_none=True),
            status_code=outcome.status_code,
        )

    # ── Fallback: 405 for non-POST, 404 for unknown POST paths ──

    @app.api_route("/{path:path}", methods=_ALL_METHODS, include_in_schema=False)
    async def fallback(request: Request, path: str) -> Response:
        if request.method != "POST":
            log.info("Method Not Allowed: %s for /%s", request.method, path)
            return PlainTextResponse("Method Not Allowed", status_code=405)
        log.info("Path Not Found: /%s", path)
        return PlainTextResponse("Not Found", status_code=404)

    return app


# ── Module-level app instance for uvicorn ──────────────────────

app = create_app()


if __name__ == "__main__":
    import uvicorn

    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["default"]["fmt"] = (
        "%(asctime)s %(name)-12s %(levelname)-8s %(message)s"
    )

    uvicorn.run(
        "booking_hub.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_config=log_config,
    )
