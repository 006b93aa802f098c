from __future__ import annotations

from typing import Any

import httpx


class GatewayError(RuntimeError):
    """Network failure, non-2xx status or malformed payload from a proxy."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def decode_json(resp: httpx.Response, gateway: str) -> Any:
    if resp.is_error:
        detail = ""
        try:
            body = resp.json()
            if isinstance(body, dict):
                detail = str(body.get("error") or "")
        except ValueError:
            pass
        raise GatewayError(f"{gateway} returned {resp.status_code} {detail}".strip(), status_code=resp.status_code)
    try:
        return resp.json()
    except ValueError as exc:
        raise GatewayError(f"{gateway} returned invalid JSON", status_code=resp.status_code) from exc


__all__ = ["GatewayError", "decode_json"]
