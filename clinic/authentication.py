"""
Custom authentication backend for token-based auth.

This module defines a subclass of Django REST framework's
``TokenAuthentication`` that pins the ``keyword`` used in the
``Authorization`` header.  Keeping it apart from any view definitions
avoids circular imports when the REST framework loads authentication
classes during initialization.  JWT bearer tokens are handled by
simplejwt's ``JWTAuthentication`` configured next to this class.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """Token authentication using the ``Token`` keyword.

    The resolved ``request.user`` is the identity every messaging
    permission check relies on.
    """

    keyword = 'Token'
