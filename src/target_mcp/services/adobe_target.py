"""
Adobe Target Admin API client.

This module provides the aiohttp client the built-in tools use to update A/B
activities, and the shared plugin base class those tools derive from.
"""

from abc import abstractmethod
from collections.abc import Callable
from typing import Any
from urllib.parse import quote

import aiohttp

from target_mcp.mcp.plugins.base import ToolPlugin
from target_mcp.utils.config import TargetMCPSettings, get_settings
from target_mcp.utils.errors import AdobeTargetAPIError
from target_mcp.utils.logging import get_logger

logger = get_logger(__name__)

CONTENT_TYPE = "application/vnd.adobe.target.v1+json"


class AdobeTargetClient:
    """Client for the Adobe Target activity endpoints.

    Usable as an async context manager. A session passed in is borrowed and
    left open; a session the client creates is closed with the client.
    """

    def __init__(
        self,
        settings: TargetMCPSettings | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        """Initialize the Adobe Target client.

        Args:
            settings: Optional settings override
            session: Optional HTTP session to borrow
        """
        self.settings = settings or get_settings()
        self.base_url = self.settings.adobe_base_url.rstrip("/")
        self.timeout_seconds = self.settings.http_timeout_seconds
        self.session = session
        self._owns_session = session is None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure HTTP session is available."""
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self.session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self.session

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.get_access_token() or ''}",
            "X-Api-Key": self.settings.adobe_api_key or "",
            "Content-Type": CONTENT_TYPE,
        }

    def activity_url(self, tenant: str, resource: str, activity_id: str | None = None) -> str:
        """URL of one A/B activity sub-resource. Path segments are percent-encoded."""
        activity_id = activity_id or self.settings.adobe_activity_id
        tenant, activity_id = quote(str(tenant), safe=""), quote(str(activity_id), safe="")
        return f"{self.base_url}/{tenant}/target/activities/ab/{activity_id}/{resource}"

    async def update_activity(
        self,
        tenant: str,
        resource: str,
        body: dict[str, Any],
        activity_id: str | None = None,
    ) -> Any:
        """Replace one sub-resource of an A/B activity.

        Args:
            tenant: Tenant identifier
            resource: Sub-resource name (``priority``, ``schedule``, ``state``)
            body: JSON request body
            activity_id: Activity to update; the configured one when omitted

        Returns:
            Decoded JSON response, or an empty dict for an empty body

        Raises:
            AdobeTargetAPIError: On a non-2xx response or transport failure
        """
        session = await self._ensure_session()
        url = self.activity_url(tenant, resource, activity_id)
        logger.debug(f"PUT {url}")

        try:
            async with session.put(url, json=body, headers=self._headers()) as response:
                text = await response.text()
                if not 200 <= response.status < 300:
                    raise AdobeTargetAPIError(
                        f"Adobe Target request failed: {response.status} - {text or response.reason}",
                        status=response.status,
                        context={"url": url, "resource": resource},
                    )
                if not text.strip():
                    return {}
                return await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise AdobeTargetAPIError(
                f"Adobe Target request failed: {e}",
                context={"url": url, "resource": resource},
            ) from e
        except TimeoutError as e:
            raise AdobeTargetAPIError(
                f"Adobe Target request timed out after {self.timeout_seconds}s",
                context={"url": url, "resource": resource},
            ) from e

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self.session is not None and self._owns_session and not self.session.closed:
            await self.session.close()

    async def __aenter__(self) -> "AdobeTargetClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class AdobeTargetActivityTool(ToolPlugin):
    """Base class for tools that update one sub-resource of an A/B activity.

    Subclasses set ``name``, ``description``, ``resource`` and
    ``field_schemas``. Every field is required and is sent as the request
    body; ``tenant`` and the optional ``activityId`` select the target URL.
    """

    def __init__(
        self,
        settings: TargetMCPSettings | None = None,
        client_factory: Callable[[], AdobeTargetClient] | None = None,
    ):
        self._settings = settings
        self._client_factory = client_factory

    @property
    @abstractmethod
    def resource(self) -> str:
        """Activity sub-resource this tool replaces."""
        pass

    @property
    @abstractmethod
    def field_schemas(self) -> dict[str, dict[str, Any]]:
        """JSON schemas of the body fields, in body order."""
        pass

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "tenant": {"type": "string", "description": "The tenant identifier."},
                **self.field_schemas,
                "activityId": {
                    "type": "string",
                    "description": "The activity to update. Defaults to the configured activity.",
                },
            },
            "required": ["tenant", *self.field_schemas],
        }

    def _client(self) -> AdobeTargetClient:
        if self._client_factory is not None:
            return self._client_factory()
        return AdobeTargetClient(self._settings)

    async def invoke(self, arguments: dict[str, Any]) -> Any:
        body = {field_name: arguments[field_name] for field_name in self.field_schemas}
        activity_id = arguments.get("activityId")

        async with self._client() as client:
            result = await client.update_activity(
                arguments["tenant"], self.resource, body, activity_id=activity_id
            )

        logger.info(f"Updated activity {self.resource} for tenant {arguments['tenant']}")
        return result
