"""Low-level Share API calls.

Builds requests against the region's base URL, sends them through the
resilient transport, decodes JSON, and turns error responses into
``DexcomError`` via the classifier.
"""

import json
from typing import Any

import httpx

from dexcom_share.core.classifier import classify_error
from dexcom_share.core.constants import DEFAULT_HEADERS
from dexcom_share.core.errors import DexcomError, DexcomErrorCode
from dexcom_share.core.params import encode_query_params
from dexcom_share.core.transport import ResilientTransport
from dexcom_share.logging_config import get_logger

logger = get_logger(__name__)


class ShareApi:
    """POST-only JSON client for one Share region."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        transport: ResilientTransport,
        base_url: str,
    ):
        self._client = client
        self._transport = transport
        self.base_url = base_url

    def build_request(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> httpx.Request:
        return self._client.build_request(
            "POST",
            self.base_url + endpoint,
            params=encode_query_params(params),
            headers=DEFAULT_HEADERS,
            json=json_body or {},
        )

    async def post(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        """POST to ``endpoint`` and return the decoded JSON body.

        Raises:
            DexcomError: Non-JSON body, or a classified error response
            httpx.HTTPError: Network failure or retries exhausted
        """
        request = self.build_request(endpoint, params=params, json_body=json_body)
        response = await self._transport.execute(request)

        data = _decode_body(response)
        if not response.is_success:
            error = classify_error(data)
            logger.warning(
                "Share request rejected",
                endpoint=endpoint,
                status=response.status_code,
                kind=error.kind.value,
                code=error.code.name,
            )
            raise error
        return data


def _decode_body(response: httpx.Response) -> Any:
    text = response.text
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(
            "Share response is not valid JSON",
            status=response.status_code,
            length=len(text),
        )
        raise DexcomError(DexcomErrorCode.SERVER_INVALID_JSON) from e
