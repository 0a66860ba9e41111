from datetime import datetime, timezone
from typing import Any

from fastapi import Request


def success_envelope(request: Request, data: Any) -> dict:
    """{success, data, timestamp, path, method} wrapper used by the complete/results routes"""
    return {
        "success": True,
        "data": data,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": str(request.url),
        "method": request.method or "UNKNOWN",
    }
