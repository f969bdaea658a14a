import json
import logging
from typing import Any

from btaml_html.views import View
from fastapi import Response
from fastapi.responses import JSONResponse

from ..newsletter import NewsletterError, subscribe

logger = logging.getLogger(__name__)


class NewsletterView(View):
    """``POST {"email": ...}``; answers ``{"message": ...}`` or ``{"error": ...}``."""

    async def post(self, **kwargs: Any) -> Response:  # noqa: ARG002
        try:
            body = await self.request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.debug("Newsletter request without a JSON body")
            body = {}
        email = body.get("email") if isinstance(body, dict) else None

        state = self.request.app.state
        try:
            message = await subscribe(
                email if isinstance(email, str) else None,
                settings=state.settings,
                mailer=state.mailer,
                env=state.template_manager.templates.env,
            )
        except NewsletterError as e:
            return JSONResponse({"error": e.message}, status_code=e.status_code)
        return JSONResponse({"message": message})
