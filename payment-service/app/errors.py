class PaymentError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PaymentValidationError(PaymentError):
    """A required request field is missing. Raised before any external call."""

    status_code = 400


class GatewayError(PaymentError):
    """The payment gateway rejected the request or could not be reached."""

    def __init__(self, message: str, gateway_status: int = None, detail=None):
        super().__init__(message)
        # HTTP status returned by the gateway, not the one sent to our caller
        self.gateway_status = gateway_status
        self.detail = detail


class StoreError(PaymentError):
    """The record store update failed."""
