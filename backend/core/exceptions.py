"""Domain errors raised by stores and services and mapped to HTTP by the routers."""


class InvoiceGenError(Exception):
    """Base class for every error the application raises on purpose."""


class NotFoundError(InvoiceGenError):
    entity = "Resource"

    def __init__(self, entity_id):
        self.entity_id = entity_id
        super().__init__(f"{self.entity} {entity_id} not found")


class InvoiceNotFoundError(NotFoundError):
    entity = "Invoice"


class CustomerNotFoundError(NotFoundError):
    entity = "Customer"


class UserNotFoundError(NotFoundError):
    entity = "User"


class UserInfoMissingError(InvoiceGenError):
    """Raised when a service is used before the caller's identity was bound."""

    def __init__(self):
        super().__init__("No user info bound to the service; call set_user_info() first")


class StoreUnavailableError(InvoiceGenError):
    """The relational store cannot be reached."""


class DuplicateEmailError(InvoiceGenError):
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email '{email}' is already registered")


class InvalidCredentialsError(InvoiceGenError):
    """Password confirmation did not match the stored hash."""
