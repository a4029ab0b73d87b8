"""
Drum Consolidator.

Groups available lots into drums. A draft lives only on the client side: it
holds its own copies of the lots as they looked when added, reserves them
against other open drafts, and is checked against the registry once more at
commit time. Commit and cancel are all-or-nothing.

Homogeneity is judged against the draft's reference lot (the first one
added): same honey type, same moisture band, same classification.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from honey_ledger.config_schema import DrumsConfig
from honey_ledger.enums import BatchMode, DraftState, DrumState, LotState
from honey_ledger.exceptions import (
    CapacityExceeded,
    ConcurrentModification,
    IncompatibleLot,
    InvalidInput,
    InvalidTransition,
    LedgerError,
    LotAlreadyConsumed,
    LotUnavailable,
    NotFound,
)
from honey_ledger.folios import FolioSequence
from honey_ledger.logging import get_logger
from honey_ledger.models import Drum, Lot, new_id, utcnow
from honey_ledger.registry import LotRegistry

logger = get_logger(__name__)

_OPEN_DRAFT_STATES = (DraftState.EMPTY, DraftState.BUILDING, DraftState.READY_TO_COMMIT)


@dataclass
class DrumDraft:
    """Client-local drum under construction."""

    id: str = field(default_factory=lambda: f"draft-{new_id()}")
    lots: list[Lot] = field(default_factory=list)
    state: DraftState = DraftState.EMPTY
    notes: str | None = None
    warning_kg: Decimal = Decimal("300")

    @property
    def reference(self) -> Lot | None:
        return self.lots[0] if self.lots else None

    @property
    def lot_ids(self) -> list[str]:
        return [lot.id for lot in self.lots]

    @property
    def total_quantity_kg(self) -> Decimal:
        return sum((lot.quantity_kg for lot in self.lots), Decimal("0"))

    @property
    def total_cost(self) -> Decimal:
        return sum((lot.cost_total for lot in self.lots), Decimal("0"))

    @property
    def over_warning_threshold(self) -> bool:
        return self.total_quantity_kg > self.warning_kg

    @property
    def is_open(self) -> bool:
        return self.state in _OPEN_DRAFT_STATES


@dataclass
class BatchCommitResult:
    """
    Outcome of committing several drafts.

    In sequential mode ``committed`` keeps the drums saved before the failing
    draft; they are not rolled back.
    """

    committed: list[Drum] = field(default_factory=list)
    failed_index: int | None = None
    error: LedgerError | None = None
    not_attempted: list[DrumDraft] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


class DrumConsolidator:
    def __init__(
        self,
        registry: LotRegistry,
        *,
        config: DrumsConfig | None = None,
        folios: FolioSequence | None = None,
    ) -> None:
        self.registry = registry
        self.config = config or DrumsConfig()
        self.folios = folios or FolioSequence("TAMB")
        self._drums: dict[str, Drum] = {}
        self._reservations: dict[str, str] = {}

    @property
    def capacity_kg(self) -> Decimal:
        return self.config.capacity_kg

    # ----------------- lookups -----------------

    def get(self, drum_id: str) -> Drum:
        try:
            return self._drums[drum_id]
        except KeyError:
            raise NotFound("Drum", drum_id) from None

    def drums(self, state: DrumState | None = None) -> list[Drum]:
        return [d for d in self._drums.values() if state is None or d.state == state]

    def drum_lots(self, drum_id: str) -> list[Lot]:
        drum = self.get(drum_id)
        lots = [self.registry.get(lot_id) for lot_id in drum.lot_ids]
        return sorted(lots, key=lambda lot: lot.arrival_sequence)

    # ----------------- draft editing -----------------

    def new_draft(self, notes: str | None = None) -> DrumDraft:
        return DrumDraft(notes=notes, warning_kg=self.config.warning_kg)

    def add_lot(self, draft: DrumDraft, lot: Lot | str) -> DrumDraft:
        self._require_open(draft)
        lot = self.registry.get(lot) if isinstance(lot, str) else lot

        if lot.id in draft.lot_ids:
            raise LotUnavailable(lot.id, "already in this draft")
        holder = self._reservations.get(lot.id)
        if holder is not None and holder != draft.id:
            raise LotUnavailable(lot.id, f"reserved by draft {holder}")
        current = self.registry.get(lot.id)
        if current.state != LotState.AVAILABLE:
            reason = (
                f"bound to drum {current.container_id}"
                if current.state == LotState.ASSIGNED
                else f"state is {current.state.value}"
            )
            raise LotUnavailable(lot.id, reason)

        reference = draft.reference
        if reference is not None:
            self._check_homogeneity(reference, current)

        new_total = draft.total_quantity_kg + current.quantity_kg
        if new_total > self.capacity_kg:
            logger.warning(
                "drum_capacity_rejected",
                draft_id=draft.id,
                lot_id=current.id,
                total_kg=str(new_total),
            )
            raise CapacityExceeded(new_total, self.capacity_kg, lot_id=current.id)

        draft.lots.append(current.model_copy())
        draft.state = DraftState.BUILDING
        self._reservations[current.id] = draft.id
        if draft.over_warning_threshold:
            logger.info(
                "drum_over_warning_threshold",
                draft_id=draft.id,
                total_kg=str(draft.total_quantity_kg),
            )
        return draft

    def remove_lot(self, draft: DrumDraft, lot_id: str) -> DrumDraft:
        self._require_open(draft)
        if lot_id not in draft.lot_ids:
            raise NotFound("Lot in draft", lot_id)
        draft.lots = [lot for lot in draft.lots if lot.id != lot_id]
        self._reservations.pop(lot_id, None)
        draft.state = DraftState.BUILDING if draft.lots else DraftState.EMPTY
        return draft

    def mark_ready(self, draft: DrumDraft) -> DrumDraft:
        """Freeze editing intent; any later add/remove returns it to BUILDING."""
        self._require_open(draft)
        self._validate_for_commit(draft)
        draft.state = DraftState.READY_TO_COMMIT
        return draft

    def discard(self, draft: DrumDraft) -> None:
        self._require_open(draft)
        self._release(draft)
        draft.state = DraftState.DISCARDED

    def _check_homogeneity(self, reference: Lot, lot: Lot) -> None:
        for attr in ("honey_type_id", "moisture_band", "classification"):
            expected = getattr(reference, attr)
            actual = getattr(lot, attr)
            if expected != actual:
                logger.warning(
                    "drum_homogeneity_rejected",
                    lot_id=lot.id,
                    field=attr,
                    expected=getattr(expected, "value", expected),
                    actual=getattr(actual, "value", actual),
                )
                raise IncompatibleLot(lot.id, attr, expected, actual)

    def _require_open(self, draft: DrumDraft) -> None:
        if not draft.is_open:
            raise InvalidTransition("Draft", draft.id, draft.state, _OPEN_DRAFT_STATES, DraftState.BUILDING)

    def _release(self, draft: DrumDraft) -> None:
        for lot_id in draft.lot_ids:
            if self._reservations.get(lot_id) == draft.id:
                del self._reservations[lot_id]

    # ----------------- commit -----------------

    def _validate_for_commit(self, draft: DrumDraft) -> None:
        if not draft.lots:
            raise InvalidInput("A drum needs at least one lot", draft_id=draft.id)
        total = draft.total_quantity_kg
        if total > self.capacity_kg:
            raise CapacityExceeded(total, self.capacity_kg)
        reference = draft.lots[0]
        for lot in draft.lots[1:]:
            self._check_homogeneity(reference, lot)

    def _stale_lots(self, draft: DrumDraft) -> list[str]:
        stale = []
        for snapshot in draft.lots:
            current = self.registry.get(snapshot.id)
            if current.state != LotState.AVAILABLE:
                stale.append(snapshot.id)
        return stale

    def commit(self, draft: DrumDraft) -> Drum:
        """
        Persist a draft as an ACTIVE drum, binding every member lot.

        Fails with ConcurrentModification, changing nothing, if any member lot
        is no longer AVAILABLE in the registry.
        """
        self._require_open(draft)
        self._validate_for_commit(draft)

        stale = self._stale_lots(draft)
        if stale:
            logger.warning("drum_commit_conflict", draft_id=draft.id, lot_ids=stale)
            raise ConcurrentModification(draft.id, stale)

        reference = draft.lots[0]
        ordered = sorted(draft.lots, key=lambda lot: lot.arrival_sequence)
        total = draft.total_quantity_kg
        drum = Drum(
            folio=self.folios.next(),
            lot_ids=[lot.id for lot in ordered],
            honey_type_id=reference.honey_type_id,
            classification=reference.classification,
            moisture_band=reference.moisture_band,
            total_quantity_kg=total,
            total_cost=draft.total_cost,
            average_moisture=_weighted_moisture(ordered),
            over_warning_threshold=total > self.config.warning_kg,
            notes=draft.notes,
        )
        self.registry.transition_many(
            drum.lot_ids,
            LotState.AVAILABLE,
            LotState.ASSIGNED,
            container_id=drum.id,
        )
        self._drums[drum.id] = drum
        self._release(draft)
        draft.state = DraftState.COMMITTED

        logger.info(
            "drum_committed",
            drum_id=drum.id,
            folio=drum.folio,
            lot_count=len(drum.lot_ids),
            total_kg=str(drum.total_quantity_kg),
            over_warning_threshold=drum.over_warning_threshold,
        )
        return drum

    def create(self, lot_ids: Sequence[str], notes: str | None = None) -> Drum:
        """Build and commit a drum in one step; nothing is reserved on failure."""
        draft = self.new_draft(notes=notes)
        try:
            for lot_id in lot_ids:
                self.add_lot(draft, lot_id)
            return self.commit(draft)
        except LedgerError:
            if draft.is_open:
                self.discard(draft)
            raise

    def commit_batch(
        self,
        drafts: Iterable[DrumDraft],
        mode: BatchMode | str | None = None,
    ) -> BatchCommitResult:
        drafts = list(drafts)
        mode = BatchMode(mode or self.config.batch_mode)
        if mode == BatchMode.ATOMIC:
            return self._commit_atomic(drafts)
        return self._commit_sequential(drafts)

    def _commit_sequential(self, drafts: list[DrumDraft]) -> BatchCommitResult:
        result = BatchCommitResult()
        for index, draft in enumerate(drafts):
            try:
                result.committed.append(self.commit(draft))
            except LedgerError as e:
                result.failed_index = index
                result.error = e
                result.not_attempted = drafts[index + 1 :]
                logger.warning(
                    "drum_batch_aborted",
                    failed_index=index,
                    committed=len(result.committed),
                    error_code=e.error_code,
                )
                break
        return result

    def _commit_atomic(self, drafts: list[DrumDraft]) -> BatchCommitResult:
        result = BatchCommitResult()
        seen: set[str] = set()
        for index, draft in enumerate(drafts):
            try:
                self._require_open(draft)
                self._validate_for_commit(draft)
                stale = self._stale_lots(draft)
                if stale:
                    raise ConcurrentModification(draft.id, stale)
                duplicated = seen.intersection(draft.lot_ids)
                if duplicated:
                    raise LotUnavailable(sorted(duplicated)[0], "claimed twice in one batch")
                seen.update(draft.lot_ids)
            except LedgerError as e:
                result.failed_index = index
                result.error = e
                result.not_attempted = list(drafts)
                logger.warning(
                    "drum_batch_aborted",
                    failed_index=index,
                    committed=0,
                    error_code=e.error_code,
                )
                return result
        result.committed = [self.commit(draft) for draft in drafts]
        return result

    # ----------------- cancel -----------------

    def cancel(self, drum_id: str, reason: str | None = None) -> Drum:
        """
        Cancel an ACTIVE drum and return its lots to AVAILABLE.

        Lots cancelled with their intake stay CANCELLED. A consumed member
        lot blocks the whole cancellation.
        """
        drum = self.get(drum_id)
        if drum.state != DrumState.ACTIVE:
            raise InvalidTransition("Drum", drum.id, drum.state, DrumState.ACTIVE, DrumState.CANCELLED)

        members = [self.registry.get(lot_id) for lot_id in drum.lot_ids]
        for lot in members:
            if lot.state == LotState.CONSUMED:
                logger.warning("drum_cancel_rejected", drum_id=drum.id, lot_id=lot.id)
                raise LotAlreadyConsumed(lot.id, lot.shipment_id)

        releasable = [
            lot.id for lot in members if lot.state == LotState.ASSIGNED and lot.container_id == drum.id
        ]
        self.registry.transition_many(
            releasable, LotState.ASSIGNED, LotState.AVAILABLE, container_id=None
        )
        drum.state = DrumState.CANCELLED
        drum.cancelled_at = utcnow()
        drum.cancellation_reason = reason

        logger.info("drum_cancelled", drum_id=drum.id, released_lots=len(releasable))
        return drum


def _weighted_moisture(lots: Sequence[Lot]) -> Decimal | None:
    total = sum((lot.quantity_kg for lot in lots), Decimal("0"))
    if not total:
        return None
    weighted = sum((lot.moisture_percent * lot.quantity_kg for lot in lots), Decimal("0"))
    return (weighted / total).quantize(Decimal("0.01"))
