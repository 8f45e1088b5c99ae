"""Inventory ledger: additive counts, resets and their movements.

A count never overwrites the stored quantity; it adds to it. Each write appends a
Movement row and upserts the InventoryRecord in the same transaction, so the
audit trail and the running total cannot drift apart.

Concurrent writers are handled optimistically. InventoryRecord carries a
version counter; an UPDATE that finds a newer version (or a first INSERT that
loses to another writer's INSERT) rolls the transaction back and the whole
read/compute/write cycle is re-run, up to ``max_attempts`` times.
"""

from collections.abc import Callable
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from stock_count.config import COUNT_MAX_ATTEMPTS
from stock_count.db import get_session
from stock_count.db.base import utcnow
from stock_count.db.models import Branch, InventoryRecord, Movement, MovementType, Product
from stock_count.exceptions import (
    BranchNotFound,
    InvalidQuantity,
    LostUpdateConflict,
    MissingActor,
    PersistenceFailure,
    ProductNotFound,
)
from stock_count.models.ledger import CountResult, ResetResult
from stock_count.services.branch_resolver import BranchResolver
from stock_count.utils.logger import get_logger

logger = get_logger("stock_count.ledger")

RESET_NOTES = "manual reset"


def _validate_quantity(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidQuantity(value)
    return value


def _validate_actor(acting_user: Optional[str]) -> str:
    actor = (acting_user or "").strip()
    if not actor:
        raise MissingActor()
    return actor


class InventoryLedger:
    def __init__(self, resolver: BranchResolver, max_attempts: int = COUNT_MAX_ATTEMPTS):
        self._resolver = resolver
        self._max_attempts = max(1, max_attempts)

    def get_current_quantity(
        self, product_id: int, branch_id: Optional[int] = None
    ) -> Optional[InventoryRecord]:
        """Current record for (product, branch), detached. None means the pair was never counted (quantity 0)."""
        branch_id = self._resolver.resolve(branch_id)
        with get_session() as session:
            record = self._load_record(session, product_id, branch_id)
            if record is not None:
                session.expunge(record)
            return record

    def register_count(
        self,
        product_id: int,
        branch_id: Optional[int],
        added_quantity: int,
        acting_user: str,
        movement_type: Union[MovementType, str] = MovementType.COUNT,
        notes: Optional[str] = None,
    ) -> CountResult:
        """Add ``added_quantity`` to the stored quantity and record the movement.

        Raises InvalidQuantity, MissingActor, MissingBranchContext, ProductNotFound,
        BranchNotFound, LostUpdateConflict (after retries) or PersistenceFailure.
        """
        added = _validate_quantity(added_quantity)
        actor = _validate_actor(acting_user)
        kind = MovementType(movement_type)
        branch_id = self._resolver.resolve(branch_id)

        previous, new, movement_id, attempts = self._write(
            "register_count",
            product_id,
            branch_id,
            lambda current: current + added,
            actor,
            kind,
            notes,
        )
        logger.info(
            "ledger.register_count",
            product_id=product_id,
            branch_id=branch_id,
            previous_quantity=previous,
            added_quantity=added,
            new_quantity=new,
            movement_id=movement_id,
            attempts=attempts,
        )
        return CountResult(
            product_id=product_id,
            branch_id=branch_id,
            previous_quantity=previous,
            added_quantity=added,
            new_quantity=new,
            movement_id=movement_id,
            attempts=attempts,
        )

    def reset_to_zero(
        self,
        product_id: int,
        branch_id: Optional[int],
        acting_user: str,
        notes: Optional[str] = RESET_NOTES,
    ) -> ResetResult:
        """Set the quantity to 0. Always appends an adjustment movement, even when already 0."""
        actor = _validate_actor(acting_user)
        branch_id = self._resolver.resolve(branch_id)

        previous, _, movement_id, attempts = self._write(
            "reset_to_zero",
            product_id,
            branch_id,
            lambda current: 0,
            actor,
            MovementType.ADJUSTMENT,
            notes,
        )
        logger.info(
            "ledger.reset_to_zero",
            product_id=product_id,
            branch_id=branch_id,
            previous_quantity=previous,
            movement_id=movement_id,
            attempts=attempts,
        )
        return ResetResult(
            product_id=product_id,
            branch_id=branch_id,
            previous_quantity=previous,
            new_quantity=0,
            movement_id=movement_id,
        )

    def _load_record(self, session: Session, product_id: int, branch_id: int) -> Optional[InventoryRecord]:
        return session.scalars(
            select(InventoryRecord).where(
                InventoryRecord.product_id == product_id,
                InventoryRecord.branch_id == branch_id,
            )
        ).first()

    def _write(
        self,
        operation: str,
        product_id: int,
        branch_id: int,
        compute: Callable[[int], int],
        actor: str,
        movement_type: MovementType,
        notes: Optional[str],
    ) -> tuple[int, int, int, int]:
        """Run read/compute/write in one transaction, retrying on version conflicts.

        Returns (previous_quantity, new_quantity, movement_id, attempts).
        """
        for attempt in range(1, self._max_attempts + 1):
            inserting = False
            try:
                with get_session() as session:
                    if session.get(Product, product_id) is None:
                        raise ProductNotFound(product_id)
                    if session.get(Branch, branch_id) is None:
                        raise BranchNotFound(branch_id)

                    record = self._load_record(session, product_id, branch_id)
                    previous = record.quantity if record is not None else 0
                    new = compute(previous)
                    now = utcnow()
                    if record is None:
                        inserting = True
                        record = InventoryRecord(
                            product_id=product_id,
                            branch_id=branch_id,
                            quantity=new,
                            last_counted_at=now,
                        )
                        session.add(record)
                    else:
                        record.quantity = new
                        record.last_counted_at = now
                        record.updated_at = now

                    movement = Movement(
                        branch_id=branch_id,
                        product_id=product_id,
                        previous_quantity=previous,
                        new_quantity=new,
                        movement_type=movement_type.value,
                        acting_user=actor,
                        notes=notes,
                        created_at=now,
                    )
                    session.add(movement)
                    session.flush()
                    return previous, new, movement.id, attempt
            except StaleDataError as e:
                self._log_conflict(operation, product_id, branch_id, attempt, e)
            except IntegrityError as e:
                # Only a lost race on the first insert of the (product, branch) record is retried
                if not (inserting and self._record_exists(product_id, branch_id)):
                    raise self._persistence_failure(operation, product_id, branch_id, e) from e
                self._log_conflict(operation, product_id, branch_id, attempt, e)
            except SQLAlchemyError as e:
                raise self._persistence_failure(operation, product_id, branch_id, e) from e

        logger.error(
            "ledger.conflict_exhausted",
            operation=operation,
            product_id=product_id,
            branch_id=branch_id,
            attempts=self._max_attempts,
        )
        raise LostUpdateConflict(product_id, branch_id, attempts=self._max_attempts)

    def _record_exists(self, product_id: int, branch_id: int) -> bool:
        with get_session() as session:
            return (
                session.scalar(
                    select(InventoryRecord.id).where(
                        InventoryRecord.product_id == product_id,
                        InventoryRecord.branch_id == branch_id,
                    )
                )
                is not None
            )

    def _log_conflict(self, operation: str, product_id: int, branch_id: int, attempt: int, error: Exception) -> None:
        logger.warning(
            "ledger.version_conflict",
            operation=operation,
            product_id=product_id,
            branch_id=branch_id,
            attempt=attempt,
            max_attempts=self._max_attempts,
            error=str(error).splitlines()[0] if str(error) else type(error).__name__,
        )

    def _persistence_failure(
        self, operation: str, product_id: int, branch_id: int, error: Exception
    ) -> PersistenceFailure:
        logger.error(
            "ledger.persistence_failure",
            operation=operation,
            product_id=product_id,
            branch_id=branch_id,
            error=str(error),
        )
        return PersistenceFailure(operation, product_id, branch_id, detail=str(error))
