from loguru import logger
from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        # details stay in the log, never in the response body
        logger.opt(exception=exc).error("Unhandled API error: {}", type(exc).__name__)
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': 'Internal server error'}}, status=500)
    # normalize response, keeping status and headers (WWW-Authenticate on 401)
    detail = None
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = str(resp.data)
    resp.data = {'ok': False, 'error': {'code': 'api_error', 'message': detail}}
    return resp
