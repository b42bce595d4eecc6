"""HTTP surface for ad-hoc sends from the admin UI.

`create_app` builds the FastAPI application. Bodies are parsed by hand so
that a missing field is a plain-text 400 (not FastAPI's 422), matching what
the browser client expects.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from ..config import cors_allowed_origins, load_mail_config
from ..types import SendEmailFn, SendTemplateEmailFn
from .real_senders import make_mailgun_sender, make_mailgun_template_sender

logger = logging.getLogger(__name__)

_OTHER_METHODS = ["GET", "PUT", "PATCH", "DELETE"]


def create_app(
    send_email: SendEmailFn | None = None,
    send_template_email: SendTemplateEmailFn | None = None,
) -> FastAPI:
    """Build the app; senders default to Mailgun configured from the environment."""
    if send_email is None or send_template_email is None:
        config = load_mail_config()
        send_email = send_email or make_mailgun_sender(config)
        send_template_email = send_template_email or make_mailgun_template_sender(config)

    app = FastAPI(title="Petzify Notifier")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_allowed_origins(),
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.post("/sendCustomEmail")
    async def send_custom_email(request: Request):
        body = await _json_object(request)
        if body is None:
            return PlainTextResponse("Request body must be a JSON object", status_code=400)
        missing = _missing(body, ("to", "subject", "html"))
        if missing:
            return PlainTextResponse(
                f"Missing required fields: {', '.join(missing)}", status_code=400
            )

        try:
            result = await run_in_threadpool(
                send_email,
                to_email=body["to"],
                subject=body["subject"],
                html=body["html"],
                cc=body.get("cc") or None,
            )
        except Exception as exc:
            logger.error("Custom email to %s failed: %s", body["to"], exc)
            return PlainTextResponse(str(exc), status_code=500)
        return JSONResponse({"success": True, "result": result})

    @app.post("/sendTemplateEmail")
    async def send_template_email_route(request: Request):
        body = await _json_object(request)
        if body is None:
            return PlainTextResponse("Request body must be a JSON object", status_code=400)
        missing = _missing(body, ("to", "subject", "templateId"))
        if missing:
            return PlainTextResponse(
                f"Missing required fields: {', '.join(missing)}", status_code=400
            )
        variables = body.get("dynamic_template_data") or {}
        if not isinstance(variables, Mapping):
            return PlainTextResponse("dynamic_template_data must be an object", status_code=400)

        try:
            result = await run_in_threadpool(
                send_template_email,
                to_email=body["to"],
                subject=body["subject"],
                template=body["templateId"],
                variables=variables,
                cc=body.get("cc") or None,
            )
        except Exception as exc:
            logger.error(
                "Template email %s to %s failed: %s", body["templateId"], body["to"], exc
            )
            return PlainTextResponse(str(exc), status_code=500)
        return JSONResponse({"success": True, "result": result})

    @app.api_route("/sendCustomEmail", methods=_OTHER_METHODS, include_in_schema=False)
    @app.api_route("/sendTemplateEmail", methods=_OTHER_METHODS, include_in_schema=False)
    async def method_not_allowed():
        return PlainTextResponse("Method Not Allowed", status_code=405)

    return app


async def _json_object(request: Request) -> dict[str, Any] | None:
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _missing(body: Mapping[str, Any], fields: tuple[str, ...]) -> list[str]:
    return [
        name for name in fields if not isinstance(body.get(name), str) or not body[name].strip()
    ]
