"""Python client and polling loop for the messaging API."""
from .api import MessagingClient, MessagingClientError
from .poller import ConversationPoller

__all__ = ['MessagingClient', 'MessagingClientError', 'ConversationPoller']
