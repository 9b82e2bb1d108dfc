import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """
    DRF handles its own exceptions (validation, auth, 404); anything else is
    a programmer error and gets a generic 500 after the traceback is logged.
    """
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get('view')
    logger.exception('Unhandled error in %s', view.__class__.__name__ if view else 'unknown view', exc_info=exc)
    return Response({
        'error': 'Something went wrong'
    }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
