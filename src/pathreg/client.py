from __future__ import annotations

from typing import Any

import httpx

from .core.errors import SUCCESS


class PathRegistryClientError(RuntimeError):
    def __init__(self, code: int, msg: str, data: Any = None) -> None:
        super().__init__(f"{code}: {msg}")
        self.code = int(code)
        self.msg = msg
        self.data = data


class PathRegistryClient:
    """HTTP client for a running path registry.

    Contract:
    - POST /rtspManager/addRTSPUrl     {"name", "url"}  -> {name: locator}
    - GET  /rtspManager/getRTSPUrls                     -> [{name, sourceurl, targeturl}]
    - POST /rtspManager/deleteRTSPUrl  {"name"}         -> ""

    Responses use the `{code, msg, data}` envelope; any code other than success
    raises `PathRegistryClientError`.

    Pass `http` to reuse an existing `httpx.Client` (for example a FastAPI
    `TestClient`); it is not closed by this object.
    """

    def __init__(self, base_url: str = "http://127.0.0.1:9999", *, http: httpx.Client | None = None, timeout_s: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self._http = http
        self.timeout_s = timeout_s

    def _call(self, method: str, path: str, json: dict | None = None) -> Any:
        if self._http is not None:
            res = self._http.request(method, path, json=json)
        else:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout_s) as client:
                res = client.request(method, path, json=json)
        if res.status_code >= 400:
            raise RuntimeError(f"Request failed: {res.status_code} {res.text}")

        out = res.json()
        code = int(out.get("code", -1))
        if code != SUCCESS:
            raise PathRegistryClientError(code, str(out.get("msg", "")), out.get("data"))
        return out.get("data")

    def add_path(self, name: str, url: str) -> str:
        """Register `name` with upstream `url`. Returns the locator clients should play."""
        data = self._call("POST", "/rtspManager/addRTSPUrl", {"name": name, "url": url})
        return str(data[name])

    def list_paths(self) -> list[dict[str, str]]:
        return list(self._call("GET", "/rtspManager/getRTSPUrls") or [])

    def delete_path(self, name: str) -> None:
        self._call("POST", "/rtspManager/deleteRTSPUrl", {"name": name})
