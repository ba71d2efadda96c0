"""OfferApplicationService — submit, list and reject offers.

Accepting an offer opens a transaction and lives in cm_transaction. A card
held by an overdue transaction is released before a new offer is taken.
"""

import logging
from dataclasses import replace

from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_common.cents import cents_to_display
from src.cm_common.enums import ListingStatus, NotificationType
from src.cm_common.errors import (
    ForbiddenError,
    ListingNotFoundError,
    OfferNotFoundError,
    OfferNotPendingError,
    OffersNotAcceptedError,
    SelfOfferError,
)
from src.cm_common.id_generator import generate_id
from src.cm_listing.domain.repository import ListingRepositoryProtocol
from src.cm_listing.infrastructure.persistence import ListingRepository
from src.cm_notification.application.notifier import Notifier
from src.cm_offer.application.schemas import (
    OfferListResponse,
    OfferResponse,
    SubmitOfferRequest,
)
from src.cm_offer.domain.models import Offer
from src.cm_offer.domain.repository import OfferRepositoryProtocol
from src.cm_offer.infrastructure.persistence import OfferRepository
from src.cm_realtime.infrastructure.feed import (
    ChangeFeed,
    listing_offers_channel,
    user_notifications_channel,
)
from src.cm_transaction.application.service import TransactionWorkflowService
from src.cm_transaction.domain.models import Transaction

logger = logging.getLogger(__name__)


class OfferApplicationService:
    def __init__(
        self,
        repo: OfferRepositoryProtocol | None = None,
        listing_repo: ListingRepositoryProtocol | None = None,
        notifier: Notifier | None = None,
        feed: ChangeFeed | None = None,
        workflow: TransactionWorkflowService | None = None,
    ) -> None:
        self._repo: OfferRepositoryProtocol = repo or OfferRepository()
        self._listing_repo: ListingRepositoryProtocol = listing_repo or ListingRepository()
        self._notifier = notifier or Notifier()
        self._feed = feed or ChangeFeed()
        self._workflow = workflow or TransactionWorkflowService()

    async def submit_offer(
        self,
        db: AsyncSession,
        card_id: str,
        buyer_id: str,
        req: SubmitOfferRequest,
    ) -> OfferResponse:
        expired: Transaction | None = None
        try:
            listing = await self._listing_repo.get_by_id(db, card_id)
            if listing is None:
                raise ListingNotFoundError(card_id)
            if listing.seller_id == buyer_id:
                raise SelfOfferError()
            if listing.status == ListingStatus.IN_TRANSACTION:
                expired = await self._workflow.release_overdue_hold(db, card_id)
                if expired is not None:
                    listing = replace(listing, status=ListingStatus.ACTIVE.value)
            if not listing.accepts_offers:
                raise OffersNotAcceptedError(card_id)

            offer, inserted = await self._repo.upsert_pending(
                db,
                Offer(
                    id=generate_id(),
                    card_id=card_id,
                    buyer_id=buyer_id,
                    price=req.price_cents,
                    message=req.message,
                ),
            )
            if inserted:
                await self._notifier.notify(
                    db,
                    listing.seller_id,
                    NotificationType.OFFER_RECEIVED,
                    "New offer received",
                    f"You received an offer of {cents_to_display(offer.price)} "
                    f"on {listing.name}.",
                    card_id=card_id,
                    offer_id=offer.id,
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if expired is not None:
            await self._workflow.publish_expired(expired)
        logger.info(
            "Offer %s %s on card %s by buyer %s at %d",
            offer.id,
            "submitted" if inserted else "repriced",
            card_id,
            buyer_id,
            offer.price,
        )
        await self._feed.publish(
            listing_offers_channel(card_id),
            "offer_submitted" if inserted else "offer_updated",
            {"offer_id": offer.id, "price": offer.price},
        )
        if inserted:
            await self._feed.publish(
                user_notifications_channel(listing.seller_id),
                NotificationType.OFFER_RECEIVED.value,
                {"card_id": card_id, "offer_id": offer.id},
            )
        return OfferResponse.from_domain(offer)

    async def list_offers(self, db: AsyncSession, card_id: str) -> OfferListResponse:
        if await self._listing_repo.get_by_id(db, card_id) is None:
            raise ListingNotFoundError(card_id)
        offers = await self._repo.list_by_card(db, card_id)
        return OfferListResponse(items=[OfferResponse.from_domain(o) for o in offers])

    async def reject_offer(
        self, db: AsyncSession, card_id: str, offer_id: str, seller_id: str
    ) -> OfferResponse:
        try:
            listing = await self._listing_repo.get_by_id(db, card_id)
            if listing is None:
                raise ListingNotFoundError(card_id)
            if listing.seller_id != seller_id:
                raise ForbiddenError("Only the seller can reject offers")

            offer = await self._repo.get_by_id(db, offer_id)
            if offer is None or offer.card_id != card_id:
                raise OfferNotFoundError(offer_id)

            rejected = await self._repo.reject(db, offer_id)
            if rejected is None:
                raise OfferNotPendingError(offer_id, offer.status)

            await self._notifier.notify(
                db,
                rejected.buyer_id,
                NotificationType.OFFER_REJECTED,
                "Offer declined",
                f"Your offer on {listing.name} was declined by the seller.",
                card_id=card_id,
                offer_id=offer_id,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Offer %s on card %s rejected", offer_id, card_id)
        await self._feed.publish(
            listing_offers_channel(card_id), "offer_rejected", {"offer_id": offer_id}
        )
        await self._feed.publish(
            user_notifications_channel(rejected.buyer_id),
            NotificationType.OFFER_REJECTED.value,
            {"card_id": card_id, "offer_id": offer_id},
        )
        return OfferResponse.from_domain(rejected)
