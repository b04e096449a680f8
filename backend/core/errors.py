"""
Error categorisation for user-facing messages.

Failures from the database, storage, payment provider or email function reach
the API as very different exception types. `classify_error` sniffs status
codes, database error codes and message text to put each one into a single
category so the storefront can show a consistent message.
"""
import logging

import requests

logger = logging.getLogger(__name__)

NETWORK = 'network'
AUTHENTICATION = 'authentication'
VALIDATION = 'validation'
DUPLICATE = 'duplicate'
PERMISSION = 'permission'
PAYMENT = 'payment'
GENERIC = 'generic'

ERROR_MESSAGES = {
    NETWORK: ('Connection Error', 'Please check your internet connection and try again.'),
    AUTHENTICATION: ('Session Expired', 'Your session has expired. Please sign in again.'),
    VALIDATION: ('Invalid Information', 'Please check your information and try again.'),
    DUPLICATE: ('Already Exists', 'An item with these details already exists.'),
    PERMISSION: ('Not Allowed', 'You do not have permission to perform this action.'),
    PAYMENT: ('Payment Failed', 'Your payment could not be processed. Please try another payment method.'),
    GENERIC: ('Something Went Wrong', 'There was an error processing your request. Please try again or contact support.'),
}

# Postgres / PostgREST error codes seen from the database layer
DUPLICATE_CODES = {'23505'}
PERMISSION_CODES = {'42501'}
VALIDATION_CODES = {'23502', '23514', '22P02'}
AUTHENTICATION_CODES = {'PGRST301'}

_MESSAGE_MARKERS = [
    (NETWORK, ('network', 'connection', 'timed out', 'timeout', 'failed to fetch')),
    (AUTHENTICATION, ('jwt', 'token', 'session', 'not authenticated', 'unauthorized')),
    (DUPLICATE, ('duplicate', 'already exists', 'unique constraint')),
    (PERMISSION, ('permission', 'policy', 'forbidden', 'not allowed')),
    (PAYMENT, ('payment', 'card', 'stripe', 'declined')),
    (VALIDATION, ('validation', 'required', 'invalid', 'null value')),
]


def _status_code(error):
    status_code = getattr(error, 'status_code', None)
    if status_code is None:
        response = getattr(error, 'response', None)
        status_code = getattr(response, 'status_code', None)
    return status_code


def classify_error(error) -> str:
    """Map an exception (or any object with a message) onto an error category"""
    if error is None:
        return GENERIC

    code = str(getattr(error, 'code', '') or '')
    if code in DUPLICATE_CODES:
        return DUPLICATE
    if code in PERMISSION_CODES:
        return PERMISSION
    if code in VALIDATION_CODES:
        return VALIDATION
    if code in AUTHENTICATION_CODES:
        return AUTHENTICATION

    status_code = _status_code(error)
    if status_code == 401:
        return AUTHENTICATION
    if status_code == 403:
        return PERMISSION
    if status_code == 402:
        return PAYMENT
    if status_code == 409:
        return DUPLICATE
    if status_code in (400, 422):
        return VALIDATION

    if isinstance(error, (ConnectionError, TimeoutError, requests.ConnectionError, requests.Timeout)):
        return NETWORK

    message = str(getattr(error, 'message', '') or error).lower()
    for category, markers in _MESSAGE_MARKERS:
        if any(marker in message for marker in markers):
            return category

    return GENERIC


def user_message_for(error):
    """
    Get the (title, message) pair shown to the user for an error.

    Returns:
        tuple: (category, title, message)
    """
    category = classify_error(error)
    title, message = ERROR_MESSAGES[category]
    logger.debug(f"Classified error {type(error).__name__} as {category}")
    return category, title, message
