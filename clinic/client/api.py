"""
HTTP client for the messaging API.

Wraps a ``requests.Session`` carrying the ``Authorization: Token <key>``
header and maps each conversation endpoint to a method.  Non-2xx answers
raise :class:`MessagingClientError` with the status and the server's
detail message.
"""
from __future__ import annotations

from typing import Any, Optional

import requests

DEFAULT_TIMEOUT = 10


class MessagingClientError(Exception):
    def __init__(self, status_code: int, detail: str):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class MessagingClient:
    def __init__(self, base_url: str, token: str, *, session: Optional[requests.Session] = None,
                 timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Token {token}",
            "Content-Type": "application/json",
        })

    def _request(self, method: str, path: str, payload: Optional[dict] = None) -> Any:
        response = self.session.request(method, f"{self.base_url}{path}", json=payload, timeout=self.timeout)
        if not 200 <= response.status_code < 300:
            raise MessagingClientError(response.status_code, _detail(response))
        return response.json()

    def list_conversations(self) -> list[dict]:
        return self._request("GET", "/api/conversations")

    def open_conversation(self, *, doctor_id: Optional[str] = None, patient_id: Optional[str] = None) -> dict:
        payload = {"doctorId": doctor_id} if doctor_id else {"patientId": patient_id}
        return self._request("POST", "/api/conversations", payload)

    def list_messages(self, conversation_id: str) -> list[dict]:
        return self._request("GET", f"/api/conversations/{conversation_id}/messages")

    def send_message(self, conversation_id: str, content: str) -> dict:
        return self._request("POST", f"/api/conversations/{conversation_id}/messages", {"content": content})


def _detail(response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason or ''
    if isinstance(body, dict):
        if 'detail' in body:
            return str(body['detail'])
        error = body.get('error')
        if isinstance(error, dict):
            return str(error.get('message'))
    return str(body)
