"""TransactionWorkflowService — the offer-acceptance escrow workflow.

    accept_offer  listing active → in_transaction, offer pending → chosen,
                  transaction created (expires now + TTL), buyer notified
    complete      transaction → completed, listing → sold, buyer +2
    cancel        transaction → cancelled, listing → active, audit row,
                  buyer penalty when the buyer cancels
    auto_expire   transaction → auto_cancelled, listing → active,
                  both parties notified, no reputation change

Each operation is one database transaction. The service commits or rolls
back; repositories only execute. Realtime events go out after commit.

A transaction past its deadline is expired before anything else is done
with it: complete/cancel on an overdue transaction commit the expiry and
then raise TransactionExpiredError.
"""

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.cm_common.cents import cents_to_display
from src.cm_common.datetime_utils import utc_now, utc_today
from src.cm_common.enums import (
    CancelledBy,
    ListingStatus,
    ListingType,
    NotificationType,
    ReputationOutcome,
    TransactionStatus,
)
from src.cm_common.errors import (
    CancellationReasonTooShortError,
    ForbiddenError,
    InternalError,
    ListingNotFoundError,
    ListingUnavailableError,
    OfferNotFoundError,
    OfferNotPendingError,
    OffersNotAcceptedError,
    TransactionExpiredError,
    TransactionNotActiveError,
    TransactionNotFoundError,
)
from src.cm_common.id_generator import generate_id
from src.cm_listing.domain import transitions as listing_transitions
from src.cm_listing.domain.repository import ListingRepositoryProtocol
from src.cm_listing.infrastructure.persistence import ListingRepository
from src.cm_notification.application.notifier import Notifier
from src.cm_offer.domain.repository import OfferRepositoryProtocol
from src.cm_offer.infrastructure.persistence import OfferRepository
from src.cm_realtime.infrastructure.feed import (
    ChangeFeed,
    listing_offers_channel,
    transaction_channel,
    user_notifications_channel,
)
from src.cm_reputation.application.service import ReputationService
from src.cm_transaction.application.schemas import (
    ActiveTransactionResponse,
    CancellationListResponse,
    CancellationResponse,
    TransactionListResponse,
    TransactionResponse,
    cursor_decode,
    cursor_encode,
)
from src.cm_transaction.domain.models import Cancellation, Transaction
from src.cm_transaction.domain.repository import TransactionRepositoryProtocol
from src.cm_transaction.domain.state_machine import ensure_transition
from src.cm_transaction.infrastructure.persistence import TransactionRepository

logger = logging.getLogger(__name__)


class TransactionWorkflowService:
    def __init__(
        self,
        repo: TransactionRepositoryProtocol | None = None,
        listing_repo: ListingRepositoryProtocol | None = None,
        offer_repo: OfferRepositoryProtocol | None = None,
        reputation: ReputationService | None = None,
        notifier: Notifier | None = None,
        feed: ChangeFeed | None = None,
        clock: Callable[[], datetime] = utc_now,
        ttl: timedelta | None = None,
        min_reason_length: int | None = None,
    ) -> None:
        self._repo: TransactionRepositoryProtocol = repo or TransactionRepository()
        self._listing_repo: ListingRepositoryProtocol = listing_repo or ListingRepository()
        self._offer_repo: OfferRepositoryProtocol = offer_repo or OfferRepository()
        self._reputation = reputation or ReputationService()
        self._notifier = notifier or Notifier()
        self._feed = feed or ChangeFeed()
        self._clock = clock
        self._ttl = ttl or timedelta(minutes=settings.TRANSACTION_TTL_MINUTES)
        self._min_reason_length = (
            min_reason_length
            if min_reason_length is not None
            else settings.CANCEL_REASON_MIN_LENGTH
        )

    # ------------------------------------------------------------------
    # AcceptOffer
    # ------------------------------------------------------------------

    async def accept_offer(
        self, db: AsyncSession, card_id: str, offer_id: str, seller_id: str
    ) -> TransactionResponse:
        now = self._clock()
        expired: Transaction | None = None
        try:
            listing = await self._listing_repo.get_by_id(db, card_id)
            if listing is None:
                raise ListingNotFoundError(card_id)
            if listing.seller_id != seller_id:
                raise ForbiddenError("Only the seller can accept offers")
            if listing.listing_type != ListingType.SALE:
                raise OffersNotAcceptedError(card_id)

            # A stale hold from an overdue transaction is expired before the lock.
            if listing.status == ListingStatus.IN_TRANSACTION:
                expired = await self.release_overdue_hold(db, card_id, now)
                if expired is not None:
                    listing = replace(listing, status=ListingStatus.ACTIVE.value)

            offer = await self._offer_repo.get_by_id(db, offer_id)
            if offer is None or offer.card_id != card_id:
                raise OfferNotFoundError(offer_id)
            if not offer.is_pending:
                raise OfferNotPendingError(offer_id, offer.status)
            if not listing_transitions.can_transition(
                listing.status, ListingStatus.IN_TRANSACTION
            ):
                raise ListingUnavailableError(card_id)

            # Commit guard: re-checks status='active' at write time.
            locked = await self._listing_repo.lock_for_transaction(db, card_id, seller_id)
            if locked is None:
                raise ListingUnavailableError(card_id)

            transaction_id = generate_id()
            chosen = await self._offer_repo.choose(db, offer_id, transaction_id)
            if chosen is None:
                current = await self._offer_repo.get_by_id(db, offer_id)
                raise OfferNotPendingError(offer_id, current.status if current else "missing")

            tx = await self._repo.create(
                db,
                Transaction(
                    id=transaction_id,
                    card_id=card_id,
                    seller_id=seller_id,
                    buyer_id=chosen.buyer_id,
                    offer_id=offer_id,
                    price=chosen.price,
                    expires_at=now + self._ttl,
                    created_at=now,
                ),
            )

            await self._notifier.notify(
                db,
                tx.buyer_id,
                NotificationType.OFFER_ACCEPTED,
                "Offer accepted",
                f"Your offer of {cents_to_display(tx.price)} on {listing.name} was "
                f"accepted. Complete the transaction before it expires.",
                card_id=card_id,
                offer_id=offer_id,
                transaction_id=tx.id,
            )
            await db.commit()
        except IntegrityError as exc:
            # uq_transactions_card_active: another acceptance committed first.
            await db.rollback()
            raise ListingUnavailableError(card_id) from exc
        except Exception:
            await db.rollback()
            raise

        if expired is not None:
            await self.publish_expired(expired)
        logger.info(
            "Transaction %s opened: card=%s offer=%s buyer=%s price=%d expires_at=%s",
            tx.id,
            card_id,
            offer_id,
            tx.buyer_id,
            tx.price,
            tx.expires_at.isoformat(),
        )
        await self._feed.publish(
            listing_offers_channel(card_id),
            "offer_chosen",
            {"offer_id": offer_id, "transaction_id": tx.id},
        )
        await self._publish_transaction(tx, "transaction_opened", [tx.buyer_id])
        return TransactionResponse.from_domain(tx, now)

    # ------------------------------------------------------------------
    # Complete
    # ------------------------------------------------------------------

    async def complete(
        self, db: AsyncSession, transaction_id: str, user_id: str
    ) -> TransactionResponse:
        now = self._clock()
        expired: Transaction | None = None
        overdue = False
        try:
            tx, role = await self._load_for_party(db, transaction_id, user_id)
            if role != CancelledBy.SELLER:
                raise ForbiddenError("Only the seller can complete the transaction")
            if not tx.is_active:
                raise TransactionNotActiveError(transaction_id, tx.status)

            if tx.is_expired(now):
                overdue = True
                expired = await self._expire_overdue(db, transaction_id, now)
            else:
                ensure_transition(tx.status, TransactionStatus.COMPLETED)
                done = await self._repo.complete(db, transaction_id, now)
                if done is None:
                    raise await self._lost_race(db, transaction_id)

                listing = await self._listing_repo.mark_sold(db, done.card_id, done.price)
                if listing is None:
                    raise InternalError(f"Listing {done.card_id} was not in transaction")

                await self._reputation.record_outcome(
                    db, done.buyer_id, ReputationOutcome.COMPLETED, utc_today(now)
                )
                await self._notifier.notify(
                    db,
                    done.buyer_id,
                    NotificationType.CARD_SOLD,
                    "Transaction completed",
                    f"The seller completed the sale of {listing.name} for "
                    f"{cents_to_display(done.price)}.",
                    card_id=done.card_id,
                    offer_id=done.offer_id,
                    transaction_id=done.id,
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if overdue:
            if expired is not None:
                await self.publish_expired(expired)
            raise TransactionExpiredError(transaction_id)

        logger.info("Transaction %s completed: card=%s sold at %d", done.id, done.card_id, done.price)
        await self._publish_transaction(done, "transaction_completed", [done.buyer_id])
        return TransactionResponse.from_domain(done, now)

    # ------------------------------------------------------------------
    # Cancel
    # ------------------------------------------------------------------

    async def cancel(
        self, db: AsyncSession, transaction_id: str, user_id: str, reason: str
    ) -> TransactionResponse:
        now = self._clock()
        expired: Transaction | None = None
        overdue = False
        try:
            tx, role = await self._load_for_party(db, transaction_id, user_id)
            if not tx.is_active:
                raise TransactionNotActiveError(transaction_id, tx.status)

            if tx.is_expired(now):
                overdue = True
                expired = await self._expire_overdue(db, transaction_id, now)
            else:
                reason = reason.strip()
                if len(reason) < self._min_reason_length:
                    raise CancellationReasonTooShortError(self._min_reason_length)

                ensure_transition(tx.status, TransactionStatus.CANCELLED)
                done = await self._repo.cancel(db, transaction_id, role.value, reason, now)
                if done is None:
                    raise await self._lost_race(db, transaction_id)

                listing = await self._listing_repo.release(db, done.card_id)
                if listing is None:
                    raise InternalError(f"Listing {done.card_id} was not in transaction")

                await self._repo.add_cancellation(
                    db,
                    Cancellation(
                        id=generate_id(),
                        transaction_id=done.id,
                        user_id=user_id,
                        reason=reason,
                    ),
                )
                if role == CancelledBy.BUYER:
                    await self._reputation.record_outcome(
                        db, done.buyer_id, ReputationOutcome.CANCELLED_BY_BUYER, utc_today(now)
                    )

                counterparty = done.counterparty_of(user_id)
                await self._notifier.notify(
                    db,
                    counterparty,
                    NotificationType.OFFER_REJECTED,
                    "Transaction cancelled",
                    f"The {role.value} cancelled the transaction for {listing.name}. "
                    f"Reason: {reason}",
                    card_id=done.card_id,
                    offer_id=done.offer_id,
                    transaction_id=done.id,
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if overdue:
            if expired is not None:
                await self.publish_expired(expired)
            raise TransactionExpiredError(transaction_id)

        logger.info(
            "Transaction %s cancelled by %s: card=%s relisted", done.id, role.value, done.card_id
        )
        await self._publish_transaction(done, "transaction_cancelled", [counterparty])
        return TransactionResponse.from_domain(done, now)

    # ------------------------------------------------------------------
    # AutoExpire
    # ------------------------------------------------------------------

    async def auto_expire(self, db: AsyncSession, transaction_id: str) -> Transaction | None:
        """Expire one overdue transaction. Returns None when there was nothing to do."""
        now = self._clock()
        try:
            expired = await self._expire_overdue(db, transaction_id, now)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if expired is not None:
            await self.publish_expired(expired)
        return expired

    async def release_overdue_hold(
        self, db: AsyncSession, card_id: str, now: datetime | None = None
    ) -> Transaction | None:
        """Expire the card's active transaction if it is past its deadline.

        Runs inside the caller's database transaction. The caller commits,
        then hands the returned transaction to publish_expired().
        """
        now = now or self._clock()
        tx = await self._repo.get_active_for_card(db, card_id)
        if tx is None or not tx.is_expired(now):
            return None
        return await self._expire_overdue(db, tx.id, now)

    async def publish_expired(self, tx: Transaction) -> None:
        await self._publish_transaction(
            tx, "transaction_expired", [tx.seller_id, tx.buyer_id]
        )

    async def list_overdue_ids(self, db: AsyncSession, limit: int) -> list[str]:
        return await self._repo.list_overdue_ids(db, self._clock(), limit)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_transaction(
        self, db: AsyncSession, transaction_id: str, user_id: str
    ) -> TransactionResponse:
        now = self._clock()
        tx, _ = await self._load_for_party(db, transaction_id, user_id)
        if tx.is_expired(now):
            expired = await self.auto_expire(db, transaction_id)
            tx = expired or await self._repo.get_by_id(db, transaction_id) or tx
        return TransactionResponse.from_domain(tx, now)

    async def get_active_transaction(
        self, db: AsyncSession, user_id: str
    ) -> ActiveTransactionResponse:
        """The caller's open transaction room as seller or buyer, newest first."""
        now = self._clock()
        current: Transaction | None = None
        for tx in await self._repo.list_active_for_user(db, user_id):
            if tx.is_expired(now):
                await self.auto_expire(db, tx.id)
            elif current is None:
                current = tx
        return ActiveTransactionResponse(
            transaction=TransactionResponse.from_domain(current, now) if current else None
        )

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        role: str | None,
        cursor: str | None,
        limit: int,
    ) -> TransactionListResponse:
        """The caller's purchases (role=buyer), sales (role=seller) or both."""
        now = self._clock()
        cursor_ts, cursor_id = cursor_decode(cursor)

        rows = await self._repo.list_for_user(
            db, user_id, role, cursor_ts, cursor_id, limit + 1
        )
        has_more = len(rows) > limit
        page = rows[:limit]

        items = []
        for tx in page:
            if tx.is_expired(now):
                tx = (
                    await self.auto_expire(db, tx.id)
                    or await self._repo.get_by_id(db, tx.id)
                    or tx
                )
            items.append(TransactionResponse.from_domain(tx, now))
        return TransactionListResponse(
            items=items,
            next_cursor=cursor_encode(page[-1]) if has_more and page else None,
            has_more=has_more,
        )

    async def list_cancellations(
        self, db: AsyncSession, transaction_id: str, user_id: str
    ) -> CancellationListResponse:
        await self._load_for_party(db, transaction_id, user_id)
        rows = await self._repo.list_cancellations(db, transaction_id)
        return CancellationListResponse(items=[CancellationResponse.from_domain(c) for c in rows])

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _load_for_party(
        self, db: AsyncSession, transaction_id: str, user_id: str
    ) -> tuple[Transaction, CancelledBy]:
        tx = await self._repo.get_by_id(db, transaction_id)
        if tx is None:
            raise TransactionNotFoundError(transaction_id)
        role = tx.role_of(user_id)
        if role is None:
            raise ForbiddenError("Not a party to this transaction")
        return tx, role

    async def _expire_overdue(
        self, db: AsyncSession, transaction_id: str, now: datetime
    ) -> Transaction | None:
        """Apply AutoExpire inside the caller's database transaction."""
        expired = await self._repo.auto_expire(db, transaction_id, now)
        if expired is None:
            return None

        listing = await self._listing_repo.release(db, expired.card_id)
        if listing is None:
            raise InternalError(f"Listing {expired.card_id} was not in transaction")

        for recipient in (expired.seller_id, expired.buyer_id):
            await self._notifier.notify(
                db,
                recipient,
                NotificationType.TRANSACTION_EXPIRED,
                "Transaction expired",
                f"The transaction for {listing.name} expired before it was "
                f"completed. The card is listed again.",
                card_id=expired.card_id,
                offer_id=expired.offer_id,
                transaction_id=expired.id,
            )
        logger.info(
            "Transaction %s auto-cancelled: expired at %s, card=%s relisted",
            expired.id,
            expired.expires_at.isoformat(),
            expired.card_id,
        )
        return expired

    async def _lost_race(self, db: AsyncSession, transaction_id: str) -> Exception:
        """Classify a conditional UPDATE that matched 0 rows."""
        current = await self._repo.get_by_id(db, transaction_id)
        if current is None:
            return TransactionNotFoundError(transaction_id)
        if current.status == TransactionStatus.AUTO_CANCELLED:
            return TransactionExpiredError(transaction_id)
        return TransactionNotActiveError(transaction_id, current.status)

    async def _publish_transaction(
        self, tx: Transaction, event: str, notified: list[str]
    ) -> None:
        await self._feed.publish(
            transaction_channel(tx.id),
            event,
            {"transaction_id": tx.id, "status": tx.status, "card_id": tx.card_id},
        )
        for user_id in notified:
            await self._feed.publish(
                user_notifications_channel(user_id),
                event,
                {"transaction_id": tx.id, "card_id": tx.card_id},
            )
