"""Four-stage move pipeline: classify, clip, resolve, commit.

One ``MoveCycle`` handles one batch of requests for one container and runs to
completion synchronously. Requests are processed in batch order and siblings in
spawn order; a different order can yield a different (still valid) layout.

Sibling rectangles are only ever touched through working copies while the
cycle resolves conflicts, so a request that ends up discarded leaves no trace
on the registry.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from territory_tabs.logging_utils import LAYOUT_LOGGER_NAME
from territory_tabs.move_request import MoveKind, MoveOutcome, MoveRequest, MoveResult, classify_move
from territory_tabs.rect_kit import APPROX_TOLERANCE, GeometryError, Rect, RectKit, dimensions_valid
from territory_tabs.registry import Container, Territory, TerritoryRegistry
from territory_tabs.sectors import conflict_sector, extent_along, push_away, retract_clear_of, retract_edge
from territory_tabs.settings import TerritorySettings

_LOGGER = logging.getLogger(LAYOUT_LOGGER_NAME)

_STAGE_ORDER = ("classify", "clip", "resolve", "commit")


@dataclass
class _Pending:
    index: int
    request: MoveRequest
    territory: Territory
    current: Rect
    proposal: Rect
    kind: MoveKind
    clipped: Optional[Rect] = None
    pushed: Dict[int, Rect] = field(default_factory=dict)
    displaced: Dict[int, Rect] = field(default_factory=dict)


def _handle_suffix(request: MoveRequest) -> str:
    return f" ({request.handle.value} handle)" if request.handle is not None else ""


def _inside(bounds: Rect, rect: Rect, tolerance: float = APPROX_TOLERANCE) -> bool:
    return (
        rect.min_x >= bounds.min_x - tolerance
        and rect.min_y >= bounds.min_y - tolerance
        and rect.max_x <= bounds.max_x + tolerance
        and rect.max_y <= bounds.max_y + tolerance
    )


class MoveCycle:
    """Runs the pipeline stages for a single container.

    Stages must be called in order. A stage called out of order discards
    whatever is still pending as ``DISCARDED_INVALID``; ``commit`` always
    returns one ``MoveResult`` per request passed to ``classify``, in order.
    """

    def __init__(
        self,
        registry: TerritoryRegistry,
        container: Container,
        settings: TerritorySettings,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._registry = registry
        self._container = container
        self._settings = settings
        self._logger = logger or _LOGGER
        self._bounds = container.world_bounds
        self._requests: List[MoveRequest] = []
        self._results: List[Optional[MoveResult]] = []
        self._pending: List[_Pending] = []
        self._siblings: List[Territory] = []
        self._working: Dict[int, Rect] = {}
        self._completed: Optional[str] = None

    # Stage 1 --------------------------------------------------------------

    def classify(self, requests: Sequence[MoveRequest]) -> None:
        self._requests = list(requests)
        self._results = [None] * len(requests)
        self._pending = []
        last_index: Dict[int, int] = {}
        for index, request in enumerate(requests):
            last_index[request.region_id] = index

        width = self._container.width
        height = self._container.height
        for index, request in enumerate(requests):
            territory = self._registry.territory(request.region_id)
            if territory is None or territory.container_id != self._container.container_id:
                self._logger.warning(
                    "Move request for unknown region %s in container %d discarded",
                    request.region_id,
                    self._container.container_id,
                )
                self._discard(index, request, MoveOutcome.DISCARDED_INVALID, "unknown region")
                continue
            if last_index[request.region_id] != index:
                self._logger.debug("Move request for region %d superseded later in batch", request.region_id)
                self._discard(index, request, MoveOutcome.DISCARDED_INVALID, "superseded")
                continue
            if territory.locked:
                self._logger.debug("Region %d is locked; move request discarded", request.region_id)
                self._discard(index, request, MoveOutcome.DISCARDED_LOCKED, "locked")
                continue

            try:
                proposal = RectKit.from_frame(request.frame, request.proposed, width, height).world
            except GeometryError as exc:
                self._logger.debug("Region %d proposal rejected: %s", request.region_id, exc)
                self._discard(index, request, MoveOutcome.DISCARDED_DEGENERATE, str(exc))
                continue
            if not proposal.is_finite() or proposal.is_empty():
                self._logger.debug("Region %d proposal %s is degenerate", request.region_id, proposal)
                self._discard(index, request, MoveOutcome.DISCARDED_DEGENERATE, "degenerate proposal")
                continue

            current = territory.expanse.world
            if proposal.approx_equals(current):
                self._discard(index, request, MoveOutcome.DISCARDED_NOOP, "unchanged")
                continue

            kind = request.kind
            if kind is MoveKind.UNKNOWN:
                kind = classify_move(current, proposal)
            self._pending.append(_Pending(index, request, territory, current, proposal, kind))
        self._completed = "classify"

    # Stage 2 --------------------------------------------------------------

    def clip(self) -> None:
        if not self._begin("clip"):
            return
        survivors: List[_Pending] = []
        min_w, min_h = self._settings.min_size
        for pending in self._pending:
            proposal = pending.proposal
            if pending.kind is MoveKind.DRAG:
                if not _inside(self._bounds, proposal):
                    if proposal.width > self._bounds.width or proposal.height > self._bounds.height:
                        self._reject(pending, MoveOutcome.DISCARDED_DEGENERATE, "larger than container", logging.DEBUG)
                        continue
                    proposal = self._translate_into_bounds(proposal)
            elif pending.kind is MoveKind.RESIZE:
                proposal = proposal.intersect(self._bounds)
                if proposal.is_empty():
                    self._reject(pending, MoveOutcome.DISCARDED_DEGENERATE, "clipped to nothing", logging.DEBUG)
                    continue
                if self._shrinks_below_minimum(pending.current, proposal):
                    self._reject(
                        pending,
                        MoveOutcome.DISCARDED_DEGENERATE,
                        f"below minimum size {min_w:g}x{min_h:g}",
                        logging.DEBUG,
                    )
                    continue
            else:
                self._reject(pending, MoveOutcome.DISCARDED_INVALID, "unclassified at clip", logging.WARNING)
                continue
            pending.proposal = proposal
            survivors.append(pending)
        self._pending = survivors
        self._completed = "clip"

    def _translate_into_bounds(self, rect: Rect) -> Rect:
        bounds = self._bounds
        if rect.min_x < bounds.min_x:
            rect = rect.translate(bounds.min_x - rect.min_x, 0.0)
        if rect.min_y < bounds.min_y:
            rect = rect.translate(0.0, bounds.min_y - rect.min_y)
        if rect.max_x > bounds.max_x:
            rect = rect.translate(bounds.max_x - rect.max_x, 0.0)
        if rect.max_y > bounds.max_y:
            rect = rect.translate(0.0, bounds.max_y - rect.max_y)
        return rect

    def _shrinks_below_minimum(self, current: Rect, proposal: Rect) -> bool:
        min_w, min_h = self._settings.min_size
        too_narrow = proposal.width < min_w - APPROX_TOLERANCE and proposal.width < current.width - APPROX_TOLERANCE
        too_short = proposal.height < min_h - APPROX_TOLERANCE and proposal.height < current.height - APPROX_TOLERANCE
        return too_narrow or too_short

    # Stage 3 --------------------------------------------------------------

    def resolve(self) -> None:
        if not self._begin("resolve"):
            return
        for pending in self._pending:
            pending.clipped = pending.proposal
        candidates = list(self._pending)
        while True:
            survivors, stranded = self._resolve_round(candidates)
            landed = self._landed_on_stranded(survivors, stranded)
            if not landed:
                break
            # Rerun without them; their regions stay put and are siblings from the start.
            for pending, blocker in landed:
                self._reject(
                    pending,
                    MoveOutcome.DISCARDED_CONFLICT,
                    f"overlaps region {blocker.territory.region_id} whose own move failed",
                    logging.WARNING,
                )
            landed_indexes = {pending.index for pending, _blocker in landed}
            candidates = [pending for pending in candidates if pending.index not in landed_indexes]
        self._pending = survivors
        self._completed = "resolve"

    def _resolve_round(self, candidates: Sequence[_Pending]) -> Tuple[List[_Pending], List[_Pending]]:
        moving = {pending.territory.region_id for pending in candidates}
        self._siblings = [
            territory
            for territory in self._registry.territories_in(self._container.container_id)
            if territory.region_id not in moving
        ]
        self._working = {territory.region_id: territory.expanse.world for territory in self._siblings}

        survivors: List[_Pending] = []
        stranded: List[_Pending] = []
        for pending in candidates:
            pending.proposal = pending.clipped
            pending.pushed.clear()
            pending.displaced.clear()
            snapshot = dict(self._working)
            if pending.kind is MoveKind.DRAG:
                ok = self._resolve_drag(pending)
            elif pending.kind is MoveKind.RESIZE:
                ok = self._resolve_resize(pending)
            else:
                self._reject(pending, MoveOutcome.DISCARDED_INVALID, "unclassified at resolve", logging.WARNING)
                ok = False
            if ok:
                peer = next((other for other in survivors if other.proposal.overlaps(pending.proposal)), None)
                if peer is not None:
                    self._reject(
                        pending,
                        MoveOutcome.DISCARDED_CONFLICT,
                        f"overlaps region {peer.territory.region_id} moved in the same cycle",
                        logging.WARNING,
                    )
                    ok = False
            if not ok:
                self._working = snapshot
                # A region whose move failed stays put and blocks later requests.
                self._working[pending.territory.region_id] = pending.current
                self._siblings = [
                    territory
                    for territory in self._registry.territories_in(self._container.container_id)
                    if territory.region_id in self._working
                ]
                stranded.append(pending)
                continue
            self._results[pending.index] = None
            survivors.append(pending)
        return survivors, stranded

    def _landed_on_stranded(
        self, survivors: Sequence[_Pending], stranded: Sequence[_Pending]
    ) -> List[Tuple[_Pending, _Pending]]:
        landed = []
        for pending in survivors:
            for other in stranded:
                if self._working[other.territory.region_id].overlaps(pending.proposal):
                    landed.append((pending, other))
                    break
        return landed

    def _resolve_drag(self, pending: _Pending) -> bool:
        proposal = pending.proposal
        for sibling in self._siblings:
            sib_rect = self._working[sibling.region_id]
            conflict = proposal.intersect(sib_rect)
            if conflict.is_empty():
                continue
            proposal_x, proposal_y = proposal.center
            sib_x, sib_y = sib_rect.center
            if conflict.height >= conflict.width:
                if proposal_x >= sib_x:
                    shift = conflict.width + (sib_rect.max_x - conflict.max_x)
                else:
                    shift = -(conflict.width + (conflict.min_x - sib_rect.min_x))
                proposal = proposal.translate(shift, 0.0)
            else:
                if proposal_y >= sib_y:
                    shift = conflict.height + (sib_rect.max_y - conflict.max_y)
                else:
                    shift = -(conflict.height + (conflict.min_y - sib_rect.min_y))
                proposal = proposal.translate(0.0, shift)
        pending.proposal = proposal

        blocker = next(
            (sibling for sibling in self._siblings if proposal.overlaps(self._working[sibling.region_id])),
            None,
        )
        if blocker is not None:
            self._reject(
                pending,
                MoveOutcome.DISCARDED_CONFLICT,
                f"still overlaps region {blocker.region_id}",
                logging.WARNING,
            )
            return False
        if not _inside(self._bounds, proposal):
            self._reject(pending, MoveOutcome.DISCARDED_CONFLICT, "pushed outside container", logging.WARNING)
            return False
        return True

    def _resolve_resize(self, pending: _Pending) -> bool:
        min_w, min_h = self._settings.min_size
        proposal = pending.proposal

        # Pass 1: give way to locked siblings and to siblings that cannot shrink enough.
        for sibling in self._siblings:
            sib_rect = self._working[sibling.region_id]
            conflict = proposal.intersect(sib_rect)
            if conflict.is_empty():
                continue
            sector = conflict_sector(proposal.center, conflict.center)
            extent = extent_along(conflict, sector)
            if sibling.locked:
                proposal = retract_clear_of(proposal, sector, sib_rect)
                continue
            min_extent = min_w if sector.horizontal else min_h
            overreach = extent - (extent_along(sib_rect, sector) - min_extent)
            if overreach > 0.0:
                proposal = retract_edge(proposal, sector, min(overreach, extent))

        if proposal.is_empty():
            self._reject(pending, MoveOutcome.DISCARDED_DEGENERATE, "retracted to nothing", logging.DEBUG)
            return False
        if self._shrinks_below_minimum(pending.current, proposal):
            self._reject(pending, MoveOutcome.DISCARDED_DEGENERATE, "retracted below minimum size", logging.DEBUG)
            return False
        pending.proposal = proposal

        # Pass 2: push the remaining overlap onto the siblings.
        for sibling in self._siblings:
            sib_rect = self._working[sibling.region_id]
            conflict = proposal.intersect(sib_rect)
            if conflict.is_empty():
                continue
            if sibling.locked:
                self._reject(
                    pending,
                    MoveOutcome.DISCARDED_CONFLICT,
                    f"still overlaps locked region {sibling.region_id}",
                    logging.WARNING,
                )
                return False
            sector = conflict_sector(proposal.center, conflict.center)
            pushed = push_away(sib_rect, sector, extent_along(conflict, sector))
            if pushed.is_empty():
                self._reject(
                    pending,
                    MoveOutcome.DISCARDED_CONFLICT,
                    f"would collapse region {sibling.region_id}",
                    logging.WARNING,
                )
                return False
            pending.displaced.setdefault(sibling.region_id, sib_rect)
            self._working[sibling.region_id] = pushed
            pending.pushed[sibling.region_id] = pushed

        blocker = next(
            (sibling for sibling in self._siblings if proposal.overlaps(self._working[sibling.region_id])),
            None,
        )
        if blocker is not None:
            self._reject(
                pending,
                MoveOutcome.DISCARDED_CONFLICT,
                f"still overlaps region {blocker.region_id}",
                logging.WARNING,
            )
            return False
        if self._settings.strict_resize:
            return self._verify_pushes(pending)
        return True

    def _verify_pushes(self, pending: _Pending) -> bool:
        for region_id, rect in pending.pushed.items():
            if self._shrinks_below_minimum(pending.displaced[region_id], rect):
                self._reject(
                    pending,
                    MoveOutcome.DISCARDED_CONFLICT,
                    f"pushed region {region_id} below minimum size",
                    logging.WARNING,
                )
                return False
            if not _inside(self._bounds, rect):
                self._reject(
                    pending,
                    MoveOutcome.DISCARDED_CONFLICT,
                    f"pushed region {region_id} outside container",
                    logging.WARNING,
                )
                return False
        return True

    # Stage 4 --------------------------------------------------------------

    def commit(self) -> List[MoveResult]:
        self._begin("commit")
        width = self._container.width
        height = self._container.height
        pushed_ids = set()
        for pending in self._pending:
            if pending.kind is MoveKind.UNKNOWN:
                self._reject(pending, MoveOutcome.DISCARDED_INVALID, "unclassified at commit", logging.WARNING)
                continue
            pending.territory.expanse.set_world(pending.proposal, width, height)
            pushed_ids.update(pending.pushed)
            self._results[pending.index] = MoveResult(
                region_id=pending.territory.region_id,
                outcome=MoveOutcome.COMMITTED,
                kind=pending.kind,
                committed=pending.proposal,
                pushed=tuple(pending.pushed),
            )
            self._logger.debug(
                "Region %d %s%s committed at %s",
                pending.territory.region_id,
                pending.kind.value,
                _handle_suffix(pending.request),
                pending.proposal,
            )
        for sibling in self._siblings:
            if sibling.region_id in pushed_ids:
                sibling.expanse.set_world(self._working[sibling.region_id], width, height)
        self._pending = []
        self._completed = "commit"
        results: List[MoveResult] = []
        for index, result in enumerate(self._results):
            if result is None:
                request = self._requests[index]
                result = MoveResult(request.region_id, MoveOutcome.DISCARDED_INVALID, request.kind, reason="unresolved")
            results.append(result)
        return results

    # Helpers --------------------------------------------------------------

    def _begin(self, stage: str) -> bool:
        expected = _STAGE_ORDER[_STAGE_ORDER.index(stage) - 1]
        if self._completed == expected:
            return True
        if self._pending:
            self._logger.warning(
                "Move cycle stage %s called after %s; discarding %d pending request(s)",
                stage,
                self._completed or "nothing",
                len(self._pending),
            )
        for pending in self._pending:
            self._reject(pending, MoveOutcome.DISCARDED_INVALID, f"{expected} stage skipped", logging.DEBUG)
        self._pending = []
        return False

    def _discard(self, index: int, request: MoveRequest, outcome: MoveOutcome, reason: str) -> None:
        self._results[index] = MoveResult(
            region_id=request.region_id,
            outcome=outcome,
            kind=request.kind,
            reason=reason,
        )

    def _reject(self, pending: _Pending, outcome: MoveOutcome, reason: str, level: int) -> None:
        self._logger.log(
            level,
            "Region %d %s%s request discarded (%s): %s",
            pending.territory.region_id,
            pending.kind.value,
            _handle_suffix(pending.request),
            outcome.value,
            reason,
        )
        pending.pushed.clear()
        self._results[pending.index] = MoveResult(
            region_id=pending.territory.region_id,
            outcome=outcome,
            kind=pending.kind,
            reason=reason,
        )


class MovePipeline:
    """Entry point for collaborators: feeds request batches through ``MoveCycle``."""

    def __init__(
        self,
        registry: TerritoryRegistry,
        settings: Optional[TerritorySettings] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.registry = registry
        self.settings = settings or TerritorySettings()
        self._logger = logger or _LOGGER

    def run(self, container_id: int, requests: Iterable[MoveRequest]) -> List[MoveResult]:
        batch = list(requests)
        if not batch:
            return []
        container = self.registry.container(container_id)
        if container is None:
            self._logger.debug("Dropping %d move request(s) for unknown container %s", len(batch), container_id)
            return [self._rejected(request, MoveOutcome.DISCARDED_INVALID, "unknown container") for request in batch]
        if not dimensions_valid(container.width, container.height):
            self._logger.debug(
                "Dropping %d move request(s); container %d has unusable size %sx%s",
                len(batch),
                container_id,
                container.width,
                container.height,
            )
            return [self._rejected(request, MoveOutcome.DISCARDED_DEGENERATE, "invalid container size") for request in batch]

        cycle = MoveCycle(self.registry, container, self.settings, self._logger)
        try:
            cycle.classify(batch)
            cycle.clip()
            cycle.resolve()
            return cycle.commit()
        except GeometryError as exc:
            self._logger.debug("Move cycle for container %d aborted: %s", container_id, exc)
            return [self._rejected(request, MoveOutcome.DISCARDED_DEGENERATE, str(exc)) for request in batch]

    def run_all(self, batches: Mapping[int, Iterable[MoveRequest]]) -> Dict[int, List[MoveResult]]:
        return {container_id: self.run(container_id, requests) for container_id, requests in batches.items()}

    @staticmethod
    def _rejected(request: MoveRequest, outcome: MoveOutcome, reason: str) -> MoveResult:
        return MoveResult(region_id=request.region_id, outcome=outcome, kind=request.kind, reason=reason)
