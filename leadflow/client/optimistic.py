"""Optimistic inline edits for a locally held collection of leads.

A change is applied to the visible collection at once, persisted
remotely, and rolled back if the remote write fails.  The coordinator
keeps the last confirmed collection plus the changes still in flight;
the visible collection is always "confirmed + pending changes, in
order".  Dropping a failed change therefore restores exactly the
pre-edit state when it was the only edit in flight, without undoing
edits to other leads that settled in the meantime.

Everything between snapshot, apply and rollback runs without an
``await``, so on a single event loop no reader can observe a
half-applied state.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

import httpx
from pydantic import ValidationError

from leadflow.client.api_client import ApiError
from leadflow.core.constants import INLINE_EDITABLE_FIELDS, MUTATION_FAILURE_MESSAGES
from leadflow.core.exceptions import LeadNotFoundError, MutationInFlightError
from leadflow.schemas.lead import LeadOut

logger = logging.getLogger(__name__)

PersistFn = Callable[[int, Dict[str, Any]], Awaitable[Any]]


class MutationFailure(str, Enum):
    permission_denied = "permission_denied"
    session_expired = "session_expired"
    network_unreachable = "network_unreachable"
    validation_violation = "validation_violation"
    unknown = "unknown"

    @property
    def message(self) -> str:
        return MUTATION_FAILURE_MESSAGES[self.value]


_STATUS_FAILURES = {
    401: MutationFailure.session_expired,
    403: MutationFailure.permission_denied,
    400: MutationFailure.validation_violation,
    409: MutationFailure.validation_violation,
    422: MutationFailure.validation_violation,
}


def classify_failure(exc: BaseException) -> MutationFailure:
    """Map a persist failure onto the small user-facing taxonomy."""
    if isinstance(exc, ApiError):
        return _STATUS_FAILURES.get(exc.status_code, MutationFailure.unknown)
    if isinstance(exc, (httpx.TransportError, ConnectionError)):
        return MutationFailure.network_unreachable

    # Persist functions that are not backed by LeadFlowClient
    text = str(exc)
    lowered = text.lower()
    if "row-level security" in lowered or "RLS" in text or "permission" in lowered:
        return MutationFailure.permission_denied
    if "jwt" in lowered or "token" in lowered:
        return MutationFailure.session_expired
    if "network" in lowered or "fetch" in lowered:
        return MutationFailure.network_unreachable
    if "violates" in lowered:
        return MutationFailure.validation_violation
    return MutationFailure.unknown


@dataclass(frozen=True)
class MutationResult:
    lead_id: int
    changes: Mapping[str, Any]
    ok: bool
    failure: Optional[MutationFailure] = None

    @property
    def message(self) -> Optional[str]:
        return self.failure.message if self.failure else None


def _apply(record: LeadOut, changes: Mapping[str, Any]) -> LeadOut:
    return type(record).model_validate({**record.model_dump(), **changes})


class LeadCollection:
    """Confirmed lead records plus the edits still waiting on the server."""

    def __init__(self, items: Sequence[LeadOut]) -> None:
        self.confirmed: List[LeadOut] = list(items)
        self.pending: Dict[int, Dict[str, Any]] = {}
        self.visible: List[LeadOut] = list(items)

    def __contains__(self, lead_id: int) -> bool:
        return any(record.id == lead_id for record in self.confirmed)

    def compose(self) -> List[LeadOut]:
        self.visible = [
            _apply(record, self.pending[record.id]) if record.id in self.pending else record
            for record in self.confirmed
        ]
        return list(self.visible)

    def begin(self, lead_id: int, changes: Mapping[str, Any]) -> List[LeadOut]:
        """Record *changes* as pending for one lead.

        The merged record is validated first, so a rejected value raises
        ``ValidationError`` with the collection left untouched.
        """
        changes = dict(changes)
        for record in self.confirmed:
            if record.id == lead_id:
                _apply(record, changes)
        self.pending[lead_id] = changes
        return self.compose()

    def commit(self, lead_id: int) -> List[LeadOut]:
        changes = self.pending.pop(lead_id)
        self.confirmed = [
            _apply(record, changes) if record.id == lead_id else record
            for record in self.confirmed
        ]
        return self.compose()

    def rollback(self, lead_id: int) -> List[LeadOut]:
        self.pending.pop(lead_id)
        return self.compose()

    def replace(self, items: Sequence[LeadOut]) -> List[LeadOut]:
        self.confirmed = list(items)
        return self.compose()


class OptimisticMutationCoordinator:
    """Applies inline lead edits optimistically, one in flight per lead."""

    def __init__(
        self,
        items: Sequence[LeadOut],
        persist: PersistFn,
        on_change: Optional[Callable[[List[LeadOut]], None]] = None,
        on_error: Optional[Callable[[MutationResult], None]] = None,
    ) -> None:
        self._collection = LeadCollection(items)
        self._persist = persist
        self._on_change = on_change
        self._on_error = on_error
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False

    @property
    def items(self) -> List[LeadOut]:
        return list(self._collection.visible)

    @property
    def pending_ids(self) -> List[int]:
        return list(self._collection.pending)

    @property
    def closed(self) -> bool:
        return self._closed

    def is_pending(self, lead_id: int) -> bool:
        return lead_id in self._collection.pending

    def _publish(self, visible: List[LeadOut]) -> None:
        if self._on_change is not None and not self._closed:
            self._on_change(visible)

    def _settle(self, lead_id: int, committed: bool) -> None:
        if committed:
            visible = self._collection.commit(lead_id)
        else:
            visible = self._collection.rollback(lead_id)
        if not self._collection.pending:
            self._idle.set()
        self._publish(visible)

    async def mutate(self, lead_id: int, changes: Mapping[str, Any]) -> MutationResult:
        """Apply *changes* to one lead now and persist them.

        Raises :class:`MutationInFlightError` if the lead already has an
        edit in flight.  A failed persist never raises: the edit is
        rolled back and the returned result carries the failure kind.
        A value the lead schema rejects is reported the same way, as a
        ``validation_violation``, without calling *persist*.
        """
        if self._closed:
            raise RuntimeError("Coordinator is closed")
        unknown = set(changes) - INLINE_EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not editable inline: {sorted(unknown)}")
        if lead_id in self._collection.pending:
            raise MutationInFlightError(f"Lead {lead_id} is still being saved")
        if lead_id not in self._collection:
            raise LeadNotFoundError(f"Lead {lead_id} is not in this view")

        try:
            visible = self._collection.begin(lead_id, changes)
        except ValidationError as exc:
            logger.warning("Inline edit of lead %s rejected before saving: %s", lead_id, exc)
            return self._fail(lead_id, changes, MutationFailure.validation_violation)

        self._idle.clear()
        self._publish(visible)

        try:
            await self._persist(lead_id, dict(changes))
        except asyncio.CancelledError:
            self._settle(lead_id, committed=False)
            raise
        except Exception as exc:
            self._settle(lead_id, committed=False)
            failure = classify_failure(exc)
            logger.warning(
                "Inline edit of lead %s rolled back (%s): %s", lead_id, failure.value, exc
            )
            return self._fail(lead_id, changes, failure)

        self._settle(lead_id, committed=True)
        return MutationResult(lead_id, dict(changes), ok=True)

    def _fail(
        self, lead_id: int, changes: Mapping[str, Any], failure: MutationFailure
    ) -> MutationResult:
        result = MutationResult(lead_id, dict(changes), ok=False, failure=failure)
        if self._on_error is not None and not self._closed:
            self._on_error(result)
        return result

    async def wait_idle(self) -> None:
        """Return once no edit is in flight."""
        while self._collection.pending:
            await self._idle.wait()

    async def refresh(self, fetch: Callable[[], Awaitable[Sequence[LeadOut]]]) -> List[LeadOut]:
        """Replace the collection with freshly fetched records.

        Waits for in-flight edits to settle first, so a rollback can
        never overwrite the newer fetch.
        """
        await self.wait_idle()
        fetched = await fetch()
        self._publish(self._collection.replace(fetched))
        return self.items

    def close(self) -> None:
        """Detach listeners; in-flight edits still settle quietly."""
        self._closed = True
