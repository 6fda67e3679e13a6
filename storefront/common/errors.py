import logging

from quart import jsonify
from werkzeug.exceptions import HTTPException

_logger = logging.getLogger(__name__)


class StorefrontError(Exception):
    """Base for failures that map onto a specific HTTP response.

    ``message`` is meant for people, ``error`` for programs; both end up in
    the ``{success: false, message, error}`` envelope.
    """

    status_code = 400

    def __init__(self, message: str, error: str = None):
        super().__init__(message)
        self.message = message
        self.error = error or message

    def to_dict(self):
        return {"success": False, "message": self.message, "error": self.error}


class EmptyOrder(StorefrontError):
    def __init__(self):
        super().__init__(
            "Order must contain at least one item",
            "Order validation failed: items: Order must contain at least one item",
        )


class ValidationFailure(StorefrontError):
    pass


class InvalidReference(StorefrontError):
    def __init__(self, value):
        super().__init__(
            "Invalid product ID format",
            f"Order validation failed: items.product: {value} is not a valid ObjectId",
        )
        self.value = value


class ProductNotFound(StorefrontError):
    def __init__(self, product_id):
        super().__init__(
            f"Product with ID {product_id} not found",
            f"Order validation failed: Product with ID {product_id} not found",
        )
        self.product_id = product_id


class SchemaValidation(StorefrontError):
    def __init__(self, error: str, message: str = "Invalid order data"):
        super().__init__(message, error)


class InvalidTransition(StorefrontError):
    pass


class Unauthorized(StorefrontError):
    status_code = 401

    def __init__(self, error: str = "unauthorized"):
        super().__init__("Not authorized to access this route", error)


class Forbidden(StorefrontError):
    status_code = 403

    def __init__(self, message: str = "Not authorized as an admin", error: str = "forbidden"):
        super().__init__(message, error)


class NotFound(StorefrontError):
    status_code = 404

    def __init__(self, message: str = "Order not found", error: str = "not_found"):
        super().__init__(message, error)


def register_error_handlers(app) -> None:
    @app.errorhandler(StorefrontError)
    async def handle_storefront_error(exc: StorefrontError):
        _logger.info("Request rejected | status=%s error=%s", exc.status_code, exc.error)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(Exception)
    async def handle_unexpected(exc: Exception):
        # Quart routes its own HTTP exceptions (404, 405, redirects) through here too
        if isinstance(exc, HTTPException):
            if exc.code is None or exc.code < 400:
                return exc.get_response()
            return jsonify({"success": False, "message": exc.description, "error": exc.name}), exc.code
        _logger.exception("Unhandled server error: %s", exc)
        return jsonify({"success": False, "message": "Server error", "error": "Internal server error"}), 500
