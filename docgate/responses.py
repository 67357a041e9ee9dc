"""Default JSON response class: pretty-printed with the configured indent."""

import json
from typing import Any

from fastapi.responses import JSONResponse

from docgate.config import settings


class IndentedJSONResponse(JSONResponse):
    def render(self, content: Any) -> bytes:
        return json.dumps(
            content,
            ensure_ascii=False,
            allow_nan=False,
            indent=settings.json_indent or None,
            separators=(",", ": ") if settings.json_indent else (",", ":"),
        ).encode("utf-8")
