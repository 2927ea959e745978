import pytest
from rest_framework.test import APIClient

from clinic.models import User, Notification
from clinic.services.notifications import create_notification

pytestmark = pytest.mark.django_db


@pytest.fixture
def patient():
    return User.objects.create_user(username='p1', password='P@ssw0rd1', role='patient')


@pytest.fixture
def client(patient):
    c = APIClient()
    c.force_authenticate(user=patient)
    return c


def test_list_returns_own_notifications_newest_first(client, patient):
    other = User.objects.create_user(username='p2', password='P@ssw0rd1', role='patient')
    create_notification(user_id=patient.id, title='New Message', message='first', type='message', action_url='/patient/messages')
    create_notification(user_id=patient.id, title='New Prescription', message='second', type='prescription')
    create_notification(user_id=other.id, title='New Message', message='not yours', type='message')

    r = client.get('/api/notifications')
    assert r.status_code == 200 and r.data['ok'] is True
    assert r.data['unread'] == 2
    assert [n['message'] for n in r.data['data']] == ['second', 'first']
    assert r.data['data'][1]['action_url'] == '/patient/messages'


def test_unread_filter_and_mark_selected_read(client, patient):
    a = create_notification(user_id=patient.id, title='A', type='message')
    b = create_notification(user_id=patient.id, title='B', type='message')

    r = client.post('/api/notifications/read', {'ids': [a.id]}, format='json')
    assert r.status_code == 200 and r.data['updated'] == 1

    r = client.get('/api/notifications?unread=1')
    assert [n['id'] for n in r.data['data']] == [b.id]
    assert r.data['unread'] == 1


def test_mark_all_read_only_touches_own_rows(client, patient):
    other = User.objects.create_user(username='p2', password='P@ssw0rd1', role='patient')
    create_notification(user_id=patient.id, title='A')
    create_notification(user_id=patient.id, title='B')
    foreign = create_notification(user_id=other.id, title='C')

    r = client.post('/api/notifications/read', {}, format='json')
    assert r.data['updated'] == 2
    foreign.refresh_from_db()
    assert foreign.is_read is False
    assert not Notification.objects.filter(user=patient, is_read=False).exists()


def test_marking_someone_elses_notification_is_a_noop(client):
    other = User.objects.create_user(username='p2', password='P@ssw0rd1', role='patient')
    foreign = create_notification(user_id=other.id, title='C')
    r = client.post('/api/notifications/read', {'ids': [foreign.id]}, format='json')
    assert r.data['updated'] == 0


def test_notifications_require_authentication():
    assert APIClient().get('/api/notifications').status_code == 401
