"""
n8n API Client
==============

HTTP client for the n8n public REST API (``/api/v1``).
Used by the workflow-management tools.
"""

from typing import Any, Dict, Optional

import aiohttp

from n8n_mcp_bridge.config.logging import get_logger
from n8n_mcp_bridge.config.settings import ManagementApiSettings

logger = get_logger(__name__)


class N8nApiError(Exception):
    """Exception raised when n8n API communication fails."""

    def __init__(self, message: str, status: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.status = status
        self.details = details


class N8nApiClient:
    """Client for the n8n management API."""

    def __init__(self, config: ManagementApiSettings):
        if not config.configured:
            raise N8nApiError("n8n API is not configured; set N8N_API_URL and N8N_API_KEY")
        self.base_url = f"{config.api_url}/api/v1"
        self.timeout = config.api_timeout
        self._api_key = config.api_key
        self.logger: Any = logger.bind(component="n8n_api_client")
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout, connect=10)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={"X-N8N-API-KEY": self._api_key or "", "Accept": "application/json"},
            )
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        session = await self._get_session()
        url = f"{self.base_url}{path}"
        query = {k: _query_value(v) for k, v in (params or {}).items() if v is not None}
        try:
            async with session.request(method, url, params=query, json=json_body) as response:
                if response.status >= 400:
                    body = await response.text()
                    self.logger.warning(
                        "n8n API request failed",
                        method=method,
                        path=path,
                        status=response.status,
                    )
                    raise N8nApiError(
                        f"n8n API returned {response.status} for {method} {path}",
                        status=response.status,
                        details=body,
                    )
                if response.status == 204:
                    return None
                return await response.json(content_type=None)
        except aiohttp.ClientError as e:
            self.logger.error("n8n API connection error", method=method, path=path, error=str(e))
            raise N8nApiError(f"Failed to reach n8n API: {e}")

    async def health_check(self) -> Dict[str, Any]:
        # The public API has no health route; a one-item listing proves reachability and auth.
        await self._request("GET", "/workflows", params={"limit": 1})
        return {"status": "ok", "apiUrl": self.base_url}

    async def list_workflows(
        self, active: Optional[bool] = None, limit: int = 100, cursor: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self._request(
            "GET", "/workflows", params={"active": active, "limit": limit, "cursor": cursor}
        )

    async def get_workflow(self, workflow_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/workflows/{workflow_id}")

    async def create_workflow(self, workflow: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/workflows", json_body=workflow)

    async def delete_workflow(self, workflow_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/workflows/{workflow_id}")

    async def list_executions(
        self,
        workflow_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 100,
    ) -> Dict[str, Any]:
        return await self._request(
            "GET",
            "/executions",
            params={"workflowId": workflow_id, "status": status, "limit": limit},
        )


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value
