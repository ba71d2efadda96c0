"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Profile/Reputation
  3xxx: Listing
  4xxx: Offer
  5xxx: Transaction
  6xxx: Notification
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class UsernameExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class ForbiddenError(AppError):
    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(1006, detail, 403)


# --- 2xxx: Profile/Reputation ---

class ProfileNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2001, f"Profile not found for user {user_id}", 404)


# --- 3xxx: Listing ---

class ListingNotFoundError(AppError):
    def __init__(self, card_id: str) -> None:
        super().__init__(3001, f"Listing not found: {card_id}", 404)


class ListingUnavailableError(AppError):
    """Another acceptance won the race, or the listing left `active`."""

    def __init__(self, card_id: str) -> None:
        super().__init__(3002, f"Listing is no longer available: {card_id}", 409)


# --- 4xxx: Offer ---

class OfferNotFoundError(AppError):
    def __init__(self, offer_id: str) -> None:
        super().__init__(4001, f"Offer not found: {offer_id}", 404)


class OfferNotPendingError(AppError):
    def __init__(self, offer_id: str, status: str) -> None:
        super().__init__(4002, f"Offer {offer_id} in status {status} is not pending", 409)


class OffersNotAcceptedError(AppError):
    def __init__(self, card_id: str) -> None:
        super().__init__(4003, f"Listing {card_id} does not accept offers", 422)


class SelfOfferError(AppError):
    def __init__(self) -> None:
        super().__init__(4004, "Sellers cannot make offers on their own listing", 422)


# --- 5xxx: Transaction ---

class TransactionNotFoundError(AppError):
    def __init__(self, transaction_id: str) -> None:
        super().__init__(5001, f"Transaction not found: {transaction_id}", 404)


class TransactionNotActiveError(AppError):
    def __init__(self, transaction_id: str, status: str) -> None:
        super().__init__(
            5002, f"Transaction {transaction_id} in status {status} is not active", 409
        )


class TransactionExpiredError(AppError):
    def __init__(self, transaction_id: str) -> None:
        super().__init__(5003, f"Transaction has expired: {transaction_id}", 409)


class CancellationReasonTooShortError(AppError):
    def __init__(self, min_length: int) -> None:
        super().__init__(
            5004, f"Cancellation reason must be at least {min_length} characters", 422
        )


class IllegalTransactionTransitionError(AppError):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(5005, f"Transaction cannot move from {current} to {target}", 409)


# --- 6xxx: Notification ---

class NotificationNotFoundError(AppError):
    def __init__(self, notification_id: str) -> None:
        super().__init__(6001, f"Notification not found: {notification_id}", 404)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
