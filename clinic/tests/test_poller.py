import pytest
import requests

from clinic.client import ConversationPoller, MessagingClient, MessagingClientError


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


class FakeClient:
    def __init__(self):
        self.calls = []
        self.conversations = [{'id': 'c1', 'unread_count': 0}]
        self.threads = {'c1': []}
        self.fail_next = None

    def _maybe_fail(self):
        if self.fail_next:
            exc, self.fail_next = self.fail_next, None
            raise exc

    def list_conversations(self):
        self.calls.append(('conversations',))
        self._maybe_fail()
        return list(self.conversations)

    def list_messages(self, conversation_id):
        self.calls.append(('messages', conversation_id))
        self._maybe_fail()
        return list(self.threads[conversation_id])

    def send_message(self, conversation_id, content):
        self.calls.append(('send', conversation_id, content))
        message = {'id': len(self.threads[conversation_id]) + 1, 'content': content}
        self.threads[conversation_id].append(message)
        return message


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client():
    return FakeClient()


def make_poller(client, clock, **kwargs):
    return ConversationPoller(client, clock=clock, sleep=clock.sleep, **kwargs)


def test_conversations_polled_every_ten_seconds(client, clock):
    poller = make_poller(client, clock)
    poller.run(iterations=3)
    assert client.calls == [('conversations',)] * 3
    assert clock.now == 20.0


def test_active_thread_polled_every_three_seconds(client, clock):
    poller = make_poller(client, clock)
    poller.select('c1')
    delay = poller.tick()
    assert client.calls == [('conversations',), ('messages', 'c1')]
    assert delay == 3.0

    clock.now = 9.0
    poller.tick()
    assert client.calls[-1] == ('messages', 'c1')
    assert ('conversations',) not in client.calls[2:]

    clock.now = 10.0
    poller.tick()
    assert client.calls[-1] == ('conversations',)
    assert sum(1 for c in client.calls if c[0] == 'messages') == 2


def test_latest_poll_replaces_snapshot_and_fires_callbacks(client, clock):
    seen = []
    poller = make_poller(client, clock, on_messages=lambda cid, items: seen.append((cid, len(items))))
    poller.select('c1')
    poller.tick()
    client.threads['c1'].append({'id': 1, 'content': 'late arrival'})
    clock.now = 3.0
    poller.tick()
    assert poller.messages == [{'id': 1, 'content': 'late arrival'}]
    assert seen == [('c1', 0), ('c1', 1)]


def test_failed_poll_keeps_previous_snapshot(client, clock):
    poller = make_poller(client, clock)
    poller.tick()
    assert poller.conversations == [{'id': 'c1', 'unread_count': 0}]

    client.conversations = []
    client.fail_next = requests.ConnectionError('offline')
    clock.now = 10.0
    poller.tick()
    assert poller.conversations == [{'id': 'c1', 'unread_count': 0}]

    clock.now = 20.0
    poller.tick()
    assert poller.conversations == []


def test_send_refreshes_thread_immediately(client, clock):
    poller = make_poller(client, clock)
    poller.select('c1')
    poller.tick()
    poller.send('hello')
    assert client.calls[-2:] == [('send', 'c1', 'hello'), ('messages', 'c1')]
    assert poller.messages[-1]['content'] == 'hello'


def test_send_without_selection_is_an_error(client, clock):
    with pytest.raises(RuntimeError):
        make_poller(client, clock).send('hello')


def test_deselect_stops_thread_polling(client, clock):
    poller = make_poller(client, clock)
    poller.select('c1')
    poller.tick()
    poller.select(None)
    clock.now = 3.0
    assert poller.tick() == 7.0
    assert client.calls.count(('messages', 'c1')) == 1


class FakeResponse:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body
        self.text = ''
        self.reason = ''

    def json(self):
        return self._body


class RecordingSession(requests.Session):
    def __init__(self, response):
        super().__init__()
        self.response = response
        self.sent = []

    def request(self, method, url, **kwargs):
        self.sent.append((method, url, kwargs.get('json'), dict(self.headers)))
        return self.response


def test_client_sends_token_and_body():
    session = RecordingSession(FakeResponse(200, {'id': 'c9'}))
    api = MessagingClient('http://api.test/', 'abc123', session=session)
    assert api.open_conversation(doctor_id='d-1') == {'id': 'c9'}
    method, url, body, headers = session.sent[0]
    assert (method, url, body) == ('POST', 'http://api.test/api/conversations', {'doctorId': 'd-1'})
    assert headers['Authorization'] == 'Token abc123'


def test_client_raises_with_server_detail():
    session = RecordingSession(FakeResponse(403, {'ok': False, 'detail': 'Access denied'}))
    api = MessagingClient('http://api.test', 'abc123', session=session)
    with pytest.raises(MessagingClientError) as exc:
        api.list_messages('c1')
    assert exc.value.status_code == 403
    assert exc.value.detail == 'Access denied'
