"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class TextGenerationError(DomainException):
    """Text generation service returned an error or is unavailable"""

    pass


class InvalidBillingIntervalError(DomainException):
    """Billing interval is not one of weekly, monthly or yearly"""

    pass


class SubscriptionAlreadyExistsError(DomainException):
    """A subscription is already registered for this donor"""

    def __init__(self, donor_id: str):
        super().__init__(f"Subscription already exists for donor: {donor_id}")
        self.donor_id = donor_id


class SubscriptionNotFoundError(DomainException):
    """No subscription is registered for this donor"""

    def __init__(self, donor_id: str):
        super().__init__(f"Subscription not found for donor: {donor_id}")
        self.donor_id = donor_id


class SubscriptionAlreadyCancelledError(DomainException):
    """Subscription was cancelled before"""

    def __init__(self, donor_id: str):
        super().__init__(f"Subscription already cancelled for donor: {donor_id}")
        self.donor_id = donor_id
