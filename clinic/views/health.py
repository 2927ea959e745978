from django.db import connections
from django.http import JsonResponse
from loguru import logger

def healthz(request):
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
        return JsonResponse({'ok': True, 'db': bool(row and row[0]==1)})
    except Exception:
        logger.exception("health check failed")
        return JsonResponse({'ok': False, 'error': 'database unavailable'}, status=500)
