class OrderValidationError(Exception):

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ProductReferenceError(Exception):
    """A cart line points at a product that cannot be resolved or does not exist."""

    def __init__(self, index, name, reference, reason='Product not found'):
        super().__init__("{} for item {} ({!r}, id={!r})".format(reason, index + 1, name, reference))
        self.index = index
        self.name = name
        self.reference = reference
        self.reason = reason

    def as_details(self):
        return {
            'itemIndex': self.index,
            'itemName': self.name,
            'productId': self.reference,
            'reason': self.reason,
        }


class InvalidSignatureError(Exception):
    pass


class PaymentNotSuccessfulError(Exception):

    def __init__(self, status, order_reference=None):
        super().__init__("Payment status is {!r}".format(status))
        self.status = status
        self.order_reference = order_reference


class InvalidStatusTransition(Exception):

    def __init__(self, current, requested):
        super().__init__("Cannot change status from {!r} to {!r}".format(current, requested))
        self.current = current
        self.requested = requested


class EmailDeliveryError(Exception):
    pass
