from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import httpx

from tierboard.persistence._retry import default_http_retry
from tierboard.persistence.errors import PersistenceTransportError, PlacementValidationError, RankingNotFoundError
from tierboard.persistence.wire import display_settings_to_dict, placement_to_dict, ranking_base_from_dict

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tierboard.domain.display_settings import DisplaySettings
    from tierboard.domain.placement import Placement
    from tierboard.domain.ranking import RankingBase

logger = logging.getLogger(__name__)

_DEFAULT_RETRY = default_http_retry("tierboard API read")


class HttpPersistenceClient:
    """``PersistenceService`` talking to a remote tierboard server.

    Reads are retried; writes are sent once and any failure surfaces to the
    caller (the autosave reconciler records it as an error status).
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.Client | None = None,
        *,
        timeout: float = 10.0,
        retry: Callable[..., Callable[..., Any]] = _DEFAULT_RETRY,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout, connect=5.0))
        self._get_with_retry = retry(self._do_get)

    def get_effective_base(self, ranking_id: str) -> RankingBase:
        data = self._get_with_retry(self._url(ranking_id))
        return ranking_base_from_dict(data)

    def replace_placements(self, ranking_id: str, placements: Sequence[Placement]) -> None:
        logger.debug("PUT %d placements for %s", len(placements), ranking_id)
        response = self._client.put(
            self._url(ranking_id, "placements"),
            json={"placements": [placement_to_dict(p) for p in placements]},
        )
        self._check(response, ranking_id)

    def replace_overlay(self, ranking_id: str, overlay: DisplaySettings | None) -> None:
        logger.debug("PUT overlay for %s", ranking_id)
        response = self._client.put(
            self._url(ranking_id, "overlay"),
            json={"displaySettings": display_settings_to_dict(overlay) if overlay is not None else None},
        )
        self._check(response, ranking_id)

    def close(self) -> None:
        self._client.close()

    def _url(self, ranking_id: str, *parts: str) -> str:
        return "/".join([self._base_url, "api", "rankings", ranking_id, *parts])

    def _do_get(self, url: str) -> dict[str, Any]:
        logger.debug("GET %s", url)
        response = self._client.get(url)
        if response.status_code == 404:
            raise RankingNotFoundError(url.rsplit("/", 1)[-1])
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _check(response: httpx.Response, ranking_id: str) -> None:
        if response.status_code == 404:
            raise RankingNotFoundError(ranking_id)
        if response.status_code == 400:
            try:
                message = response.json().get("error", "Bad request")
            except ValueError:
                message = response.text or "Bad request"
            raise PlacementValidationError(message)
        if response.is_error:
            raise PersistenceTransportError(
                f"Save for ranking {ranking_id} failed: HTTP {response.status_code}",
                status_code=response.status_code,
            )
