from __future__ import annotations

import json
from typing import Any

import httpx
import structlog

from ndpdeploy.config.federation import FederationConfig
from ndpdeploy.config.settings import DeploySettings
from ndpdeploy.core.errors import ConfigFetchError

logger = structlog.get_logger()

ERROR_FIELDS = ("error", "detail")


class ConfigFetcher:
    """Fetches the federation document for one endpoint deployment.

    A single GET is issued per call. There is no retry: a failed attempt is
    terminal for the run.
    """

    def __init__(
        self,
        settings: DeploySettings,
        *,
        client: httpx.Client | None = None,
    ) -> None:
        self._settings = settings
        self._client = client

    def resolve_url(self, env: str, base_url: str | None, config_id: str) -> str:
        if base_url:
            base = base_url
        else:
            try:
                base = self._settings.base_url_for(env)
            except ValueError as exc:
                raise ConfigFetchError(str(exc), details={"env": env}) from exc
        return f"{base.rstrip('/')}/ep/{config_id}"

    def fetch(self, env: str, base_url: str | None, config_id: str) -> FederationConfig:
        """
        Retrieve and validate the federation document.

        Raises:
            ConfigFetchError: On transport failure, error status, empty or
                undecodable body, or a body carrying an error field
            ValidationError: If the document misses fields required by its
                enabled features
        """
        if not config_id:
            raise ConfigFetchError("A config id is required")

        url = self.resolve_url(env, base_url, config_id)
        logger.info("fetching_federation_config", url=url, config_id=config_id)

        document = self._decode(url, self._get(url))
        config = FederationConfig.from_document(document, config_id=config_id)

        logger.info(
            "federation_config_loaded",
            config_id=config.config_id,
            organization=config.organization,
            streaming=config.streaming,
            staging=config.staging,
            jhub=config.jhub,
        )
        return config

    def _get(self, url: str) -> httpx.Response:
        try:
            if self._client is not None:
                response = self._client.get(url)
            else:
                with httpx.Client(timeout=self._settings.http_timeout) as client:
                    response = client.get(url)
        except httpx.HTTPError as exc:
            logger.error("federation_fetch_network_error", url=url, error=str(exc))
            raise ConfigFetchError(
                f"Could not reach federation endpoint: {exc}", details={"url": url}
            ) from exc

        if response.is_error:
            raise ConfigFetchError(
                f"Federation endpoint returned HTTP {response.status_code}",
                details={"url": url, "status": response.status_code},
            )
        return response

    def _decode(self, url: str, response: httpx.Response) -> dict[str, Any]:
        body = response.text.strip()
        if not body:
            raise ConfigFetchError("No configuration returned", details={"url": url})

        try:
            document = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ConfigFetchError(
                f"Federation response is not valid JSON: {exc.msg}", details={"url": url}
            ) from exc

        if not isinstance(document, dict):
            raise ConfigFetchError(
                "Federation response is not a JSON object", details={"url": url}
            )

        for field_name in ERROR_FIELDS:
            if document.get(field_name):
                raise ConfigFetchError(
                    f"Federation endpoint reported an error: {document[field_name]}",
                    details={"url": url},
                )
        return document
