"""Error taxonomy shared by the core operations and the HTTP layer.

Core functions raise these; the app's error handler turns them into
``{'error': message}`` responses with the attached status code.
"""


class StoreError(Exception):
    status_code = 500
    message = 'Internal server error'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(StoreError):
    status_code = 400
    message = 'Invalid request'


class EmptyCart(ValidationError):
    message = 'Cart is empty'


class InvalidPromo(ValidationError):
    message = 'Invalid promo'


class OutOfWindow(ValidationError):
    message = 'Promo code is not active at this time'


class InvalidStatus(ValidationError):
    message = 'Invalid status'


class InvalidTransition(ValidationError):
    message = 'Status transition not allowed'


class NotFound(StoreError):
    status_code = 404
    message = 'Not found'


class Unauthorized(StoreError):
    status_code = 401
    message = 'Login required'


class Forbidden(StoreError):
    status_code = 403
    message = 'Admin required'


class Conflict(StoreError):
    status_code = 409
    message = 'Already exists'


class InternalError(StoreError):
    status_code = 500
    message = 'Internal server error'
