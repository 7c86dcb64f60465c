"""Async HTTP client for the Dealboard REST API.

Wraps one long-lived httpx.AsyncClient. Reads are retried with tenacity
on connection errors and timeouts (API_READ_RETRIES attempts, exponential
backoff). Writes are sent once: a notes or checklist save that fails is
reported to the caller, never replayed behind its back.

Every non-2xx answer and every transport failure is raised as
DealboardAPIError.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import TypeAdapter
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.dealboard.checklists.schemas import (
    ChecklistItem,
    ChecklistOwnerKind,
    ChecklistRead,
)
from src.dealboard.config import get_settings
from src.dealboard.deals.schemas import (
    DealCreate,
    DealRead,
    DocumentCreate,
    DocumentRead,
    PipelineBoard,
)
from src.dealboard.deals.stages import DealStage
from src.dealboard.parties.schemas import BuyingPartyRead

logger = structlog.get_logger(__name__)

_RETRYABLE = (httpx.ConnectError, httpx.TimeoutException)

_deal_list = TypeAdapter(list[DealRead])
_document_list = TypeAdapter(list[DocumentRead])


class DealboardAPIError(Exception):
    """Raised when the API answers with an error or cannot be reached.

    Attributes:
        status_code: HTTP status, or None for transport failures.
        detail: The ``detail`` field of the error body, when there is one.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        detail: Any = None,
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


def _checklist_path(owner_kind: ChecklistOwnerKind, owner_id: str) -> str:
    if ChecklistOwnerKind(owner_kind) is ChecklistOwnerKind.MATCH:
        return f"/matches/{owner_id}/checklist"
    return f"/deals/{owner_id}/stage-checklist"


class DealboardClient:
    """Async client for the Dealboard API.

    Args:
        base_url: API root including the ``/api`` prefix. Defaults to API_BASE_URL.
        timeout: Per-request timeout in seconds. Defaults to API_TIMEOUT.
        read_retries: Attempts per read. Defaults to API_READ_RETRIES.
        transport: Optional httpx transport (e.g. ASGITransport in tests).
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        read_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._read_retries = max(1, read_retries or settings.API_READ_RETRIES)
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            timeout=timeout or settings.API_TIMEOUT,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> DealboardClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ── Transport ───────────────────────────────────────────────────────────

    async def _get(self, path: str, params: dict | None = None) -> Any:
        params = {k: v for k, v in (params or {}).items() if v is not None}
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._read_retries),
                wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
                retry=retry_if_exception_type(_RETRYABLE),
                reraise=True,
            ):
                with attempt:
                    response = await self._http.get(path, params=params)
        except httpx.HTTPError as exc:
            logger.warning("client.read_failed", path=path, error=str(exc))
            raise DealboardAPIError(f"GET {path} failed: {exc}") from exc
        return self._decode(response)

    async def _send(self, method: str, path: str, body: Any = None) -> Any:
        try:
            response = await self._http.request(method, path, json=body)
        except httpx.HTTPError as exc:
            logger.warning("client.write_failed", method=method, path=path, error=str(exc))
            raise DealboardAPIError(f"{method} {path} failed: {exc}") from exc
        return self._decode(response)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            try:
                body = response.json()
            except ValueError:
                body = None
            detail = body.get("detail") if isinstance(body, dict) else (response.text or None)
            raise DealboardAPIError(
                f"{response.request.method} {response.request.url.path} "
                f"returned {response.status_code}: {detail}",
                status_code=response.status_code,
                detail=detail,
            ) from exc
        return response.json()

    # ── Deals ───────────────────────────────────────────────────────────────

    async def list_deals(self, stage: DealStage | None = None) -> list[DealRead]:
        data = await self._get("/deals", {"stage": DealStage(stage).value if stage else None})
        return _deal_list.validate_python(data)

    async def get_deal(self, deal_id: str) -> DealRead:
        return DealRead.model_validate(await self._get(f"/deals/{deal_id}"))

    async def create_deal(self, data: DealCreate) -> DealRead:
        body = data.model_dump(mode="json")
        return DealRead.model_validate(await self._send("POST", "/deals", body))

    async def move_deal(self, deal_id: str, stage: DealStage) -> DealRead:
        body = {"stage": DealStage(stage).value}
        return DealRead.model_validate(await self._send("PATCH", f"/deals/{deal_id}/stage", body))

    async def save_deal_notes(self, deal_id: str, notes: str) -> DealRead:
        data = await self._send("PATCH", f"/deals/{deal_id}/notes", {"notes": notes})
        return DealRead.model_validate(data)

    async def get_board(self) -> PipelineBoard:
        return PipelineBoard.model_validate(await self._get("/deals/pipeline"))

    # ── Documents ───────────────────────────────────────────────────────────

    async def list_documents(self, entity_id: str | None = None) -> list[DocumentRead]:
        data = await self._get("/documents", {"entityId": entity_id})
        return _document_list.validate_python(data)

    async def create_document(self, data: DocumentCreate) -> DocumentRead:
        body = data.model_dump(mode="json")
        return DocumentRead.model_validate(await self._send("POST", "/documents", body))

    # ── Buying Parties ──────────────────────────────────────────────────────

    async def get_party(self, party_id: str) -> BuyingPartyRead:
        return BuyingPartyRead.model_validate(await self._get(f"/buying-parties/{party_id}"))

    async def save_party_notes(self, party_id: str, notes: str) -> BuyingPartyRead:
        data = await self._send("PATCH", f"/buying-parties/{party_id}/notes", {"notes": notes})
        return BuyingPartyRead.model_validate(data)

    # ── Checklists ──────────────────────────────────────────────────────────

    async def get_checklist_items(
        self, owner_kind: ChecklistOwnerKind, owner_id: str
    ) -> list[ChecklistItem] | None:
        """Stored checklist items, or None when the server answers 404."""
        try:
            data = await self._get(_checklist_path(owner_kind, owner_id))
        except DealboardAPIError as exc:
            if exc.is_not_found:
                return None
            raise
        return ChecklistRead.model_validate(data).items

    async def replace_checklist(
        self,
        owner_kind: ChecklistOwnerKind,
        owner_id: str,
        items: list[ChecklistItem],
    ) -> ChecklistRead:
        body = {"items": [item.model_dump(mode="json") for item in items]}
        data = await self._send("PATCH", _checklist_path(owner_kind, owner_id), body)
        return ChecklistRead.model_validate(data)
