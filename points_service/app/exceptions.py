from __future__ import annotations


class PointsServiceError(Exception):
    """Base exception for all points-service errors."""


class InsufficientBalanceError(PointsServiceError):
    """Balance is lower than the requested debit. Nothing was written."""

    def __init__(self, user_id: str, balance: int, required: int) -> None:
        super().__init__(
            f"user {user_id} has {balance} points, {required} required"
        )
        self.user_id = user_id
        self.balance = balance
        self.required = required


class UnknownRewardError(PointsServiceError):
    """Reward id is not part of the catalog."""

    def __init__(self, reward_id: str) -> None:
        super().__init__(f"unknown reward: {reward_id}")
        self.reward_id = reward_id


class StoreError(PointsServiceError):
    """Failures of the backing document store (network, write conflicts, ...)."""


class StoreTimeoutError(StoreError):
    """Store call exceeded the caller supplied timeout. Nothing was committed."""


class CouponError(PointsServiceError):
    """Base class for coupon validation and consumption failures."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class CouponNotFoundError(CouponError):
    def __init__(self, code: str) -> None:
        super().__init__(code, f"coupon {code} not found")


class CouponInactiveError(CouponError):
    def __init__(self, code: str) -> None:
        super().__init__(code, f"coupon {code} is no longer active")


class CouponExhaustedError(CouponError):
    def __init__(self, code: str) -> None:
        super().__init__(code, f"coupon {code} has already been used")


class CouponExpiredError(CouponError):
    def __init__(self, code: str) -> None:
        super().__init__(code, f"coupon {code} has expired")


class CouponCodeCollisionError(CouponError):
    """Could not generate an unused coupon code within the allowed attempts."""

    def __init__(self, code: str, attempts: int) -> None:
        super().__init__(
            code, f"could not mint a unique coupon code after {attempts} attempts"
        )
        self.attempts = attempts
