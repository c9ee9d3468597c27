"""Approval state machine implementation.

One machine serves every reviewable request type. A ``Workflow`` describes
what differs between them:

- which table holds the request rows
- who may decide (an authorization predicate)
- whether a second open request for the same underlying entity is a conflict
- which extra writes an approval triggers (a side-effect hook)
- which bookkeeping columns a decision stamps

Decisions are persisted as a single ``DataStore.transaction``: the guarded
status update, the side-effect writes and the audit-history row either all
land or none of them do.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Type
from uuid import UUID

from marketplace.common.logger import get_logger
from marketplace.core.entities import Actor, utcnow
from marketplace.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    StaleRecordError,
    StorageFailureError,
)
from marketplace.core.store import (
    APPROVAL_HISTORY,
    DataStore,
    Insert,
    Operation,
    Record,
    Update,
)

from .states import (
    ApprovalState,
    ApprovalTransition,
    can_transition,
    get_transition_rule,
)

logger = get_logger("approval")

AuthorizePredicate = Callable[[Actor, Record, DataStore], bool]
DuplicateKey = Callable[[Mapping[str, Any]], Dict[str, Any]]
ApprovalHook = Callable[[Record], List[Operation]]
StampHook = Callable[[Record, ApprovalState, Actor, datetime], Dict[str, Any]]


@dataclass(frozen=True)
class Workflow:
    """Parameters that turn the shared machine into a concrete workflow."""

    name: str
    table: str
    entity: Type
    authorize: AuthorizePredicate
    forbidden_message: str = "Admin role required"
    duplicate_key: Optional[DuplicateKey] = None
    on_approve: Optional[ApprovalHook] = None
    stamp: Optional[StampHook] = None


def _duplicate(workflow: Workflow, key: Dict[str, Any]) -> ConflictError:
    return ConflictError(
        f"An open {workflow.name} request already exists",
        details={k: str(v) for k, v in key.items()},
    )


class ApprovalStateMachine:
    """
    Drives pending → approved/rejected transitions against the data store.

    The machine holds no per-request state: every call reads the current
    row, validates the transition, and writes the outcome back.
    """

    def __init__(self, store: DataStore, *, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    def submit(self, workflow: Workflow, values: Mapping[str, Any]) -> Record:
        """
        Create a request in the pending state.

        The count check covers the common case; when two submissions race
        past it, the store's unique index on open requests rejects the second
        insert and it surfaces as the same conflict.

        Raises:
            ConflictError: If the workflow forbids duplicate open requests
                and one already exists for the same underlying entity
        """
        key = workflow.duplicate_key(values) if workflow.duplicate_key is not None else None
        if key is not None and self.store.count(workflow.table, {**key, "status": ApprovalState.PENDING.value}):
            logger.info("Rejected duplicate %s request for %s", workflow.name, key)
            raise _duplicate(workflow, key)

        try:
            record = self.store.insert(
                workflow.table, {**values, "status": ApprovalState.PENDING.value}
            )
        except ConflictError as exc:
            if key is None:
                raise
            logger.info("Rejected concurrent duplicate %s request for %s", workflow.name, key)
            raise _duplicate(workflow, key) from exc
        logger.info("Submitted %s request %s", workflow.name, record["id"])
        return record

    def decide(
        self,
        workflow: Workflow,
        request_id: UUID,
        transition: ApprovalTransition,
        decider: Actor,
        *,
        comment: Optional[str] = None,
    ) -> Record:
        """
        Apply a verdict to a pending request.

        Args:
            workflow: The workflow the request belongs to
            request_id: ID of the request row
            transition: APPROVE or REJECT
            decider: Actor handing down the verdict
            comment: Optional note kept in the audit history

        Returns:
            The updated request record

        Raises:
            NotFoundError: If the request does not exist
            InvalidStateError: If the request is no longer pending, including
                when a concurrent decision won the race
            ForbiddenError: If the workflow's predicate rejects the decider
            StorageFailureError: If the store could not apply the decision;
                nothing was changed
        """
        record = self.store.get(workflow.table, request_id)
        current = ApprovalState(record["status"])

        if not can_transition(current, transition):
            raise InvalidStateError(
                f"Cannot {transition.value} {workflow.name} request {request_id}: "
                f"already {current.value}",
                from_state=current.value,
            )

        if not workflow.authorize(decider, record, self.store):
            logger.warning(
                "Denied %s on %s request %s for account %s",
                transition.value, workflow.name, request_id, decider.account_id,
            )
            raise ForbiddenError(workflow.forbidden_message)

        rule = get_transition_rule(current, transition)
        now = self.clock()

        patch: Dict[str, Any] = {"status": rule.to_state.value}
        if workflow.stamp is not None:
            patch.update(workflow.stamp(record, rule.to_state, decider, now))

        ops: List[Operation] = [
            Update(workflow.table, request_id, patch, expect={"status": current.value}),
        ]
        if rule.to_state is ApprovalState.APPROVED and workflow.on_approve is not None:
            ops.extend(workflow.on_approve(record))
        ops.append(
            Insert(
                APPROVAL_HISTORY,
                {
                    "workflow": workflow.name,
                    "request_id": request_id,
                    "from_state": current.value,
                    "to_state": rule.to_state.value,
                    "actor_id": decider.account_id,
                    "comment": comment,
                    "created_at": now,
                },
            )
        )

        try:
            results = self.store.transaction(ops)
        except StaleRecordError as exc:
            logger.info("Lost decision race on %s request %s", workflow.name, request_id)
            raise InvalidStateError(
                f"{workflow.name} request {request_id} was decided concurrently",
                from_state=exc.from_state,
            ) from exc
        except StorageFailureError:
            logger.error(
                "Could not %s %s request %s; request left %s",
                transition.value, workflow.name, request_id, current.value,
            )
            raise

        logger.info(
            "%s request %s: %s -> %s by %s",
            workflow.name, request_id, current.value, rule.to_state.value, decider.account_id,
        )
        return results[0]
