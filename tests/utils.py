from __future__ import annotations

import os
import time
from typing import Any, Dict, Optional, Tuple

import requests


DEFAULT_TIMEOUT = float(os.getenv("TF_TEST_HTTP_TIMEOUT_SECS", "8.0"))
RETRY_SECS = float(os.getenv("TF_TEST_RETRY_SECS", "0.5"))
RETRY_MAX = int(os.getenv("TF_TEST_RETRY_MAX", "20"))


class HttpError(RuntimeError):
    pass


def _join(base: str, path: str) -> str:
    if not base:
        raise ValueError("base url is empty")
    if not path.startswith("/"):
        path = "/" + path
    return base.rstrip("/") + path


def http_get_json(base: str, path: str, *, timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    url = _join(base, path)
    r = requests.get(url, timeout=timeout)
    if r.status_code >= 400:
        raise HttpError(f"GET {url} -> {r.status_code}: {r.text[:300]}")
    return r.json()


def http_post_json(base: str, path: str, payload: Dict[str, Any], *, timeout: float = DEFAULT_TIMEOUT) -> Tuple[int, Any, str]:
    r = requests.post(_join(base, path), json=payload, timeout=timeout)
    text = r.text or ""
    try:
        body = r.json()
    except ValueError:
        body = None
    return r.status_code, body, text


def wait_for_health(base_url: str, health_path: str = "/health") -> None:
    url = _join(base_url, health_path)
    last_err: Optional[str] = None
    for _ in range(RETRY_MAX):
        try:
            r = requests.get(url, timeout=DEFAULT_TIMEOUT)
            if r.status_code < 400:
                return
            last_err = f"{r.status_code}: {r.text[:200]}"
        except requests.RequestException as e:
            last_err = str(e)
        time.sleep(RETRY_SECS)
    raise HttpError(f"Service not healthy at {url}. Last error: {last_err}")


def error_code(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    detail = body.get("detail")
    return detail.get("code") if isinstance(detail, dict) else None
