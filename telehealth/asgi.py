"""
ASGI config for telehealth project.

Only HTTP is served: clients refresh conversations and messages by
polling, so no WebSocket routing is mounted.
"""
import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "telehealth.settings")

from django.core.asgi import get_asgi_application  # noqa: E402

application = get_asgi_application()
