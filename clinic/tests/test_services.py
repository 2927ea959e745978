import pytest
from django.contrib import admin
from django.core.management import call_command
from django.db import IntegrityError, transaction
from django.test import RequestFactory
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient

from clinic.models import User, Appointment, Conversation, Message
from clinic.services.conversations import resolve_conversation, CounterpartNotFound
from clinic.services.messaging import send_message, list_messages

pytestmark = pytest.mark.django_db


@pytest.fixture
def patient():
    return User.objects.create_user(username='p1', password='P@ssw0rd1', role='patient')


@pytest.fixture
def doctor():
    return User.objects.create_user(username='d1', password='P@ssw0rd1', role='doctor')


def test_pair_uniqueness_is_enforced_by_the_database(patient, doctor):
    Conversation.objects.create(patient=patient, doctor=doctor)
    with pytest.raises(IntegrityError):
        with transaction.atomic():
            Conversation.objects.create(patient=patient, doctor=doctor)


def test_resolve_reports_creation_once(patient, doctor):
    c1, created1 = resolve_conversation(patient, doctor.id)
    c2, created2 = resolve_conversation(doctor, patient.id)
    assert created1 is True and created2 is False
    assert c1.id == c2.id


def test_resolve_rejects_bad_counterparts(patient, doctor):
    admin = User.objects.create_user(username='a1', password='P@ssw0rd1', role='admin')
    with pytest.raises(PermissionError):
        resolve_conversation(admin, doctor.id)
    with pytest.raises(ValueError):
        resolve_conversation(patient, admin.id)
    missing_id = doctor.id
    doctor.delete()
    with pytest.raises(CounterpartNotFound):
        resolve_conversation(patient, missing_id)


def test_store_enforces_participation_and_content(patient, doctor):
    outsider = User.objects.create_user(username='p2', password='P@ssw0rd1', role='patient')
    conv = Conversation.objects.create(patient=patient, doctor=doctor)
    with pytest.raises(PermissionError):
        send_message(conv, outsider, 'hi')
    with pytest.raises(PermissionError):
        list_messages(outsider, conv)
    with pytest.raises(ValueError):
        send_message(conv, patient, '   ')
    assert not Message.objects.exists()


def test_unexpected_errors_return_generic_500(patient, monkeypatch):
    from clinic.views import conversations as views

    def broken(user):
        raise RuntimeError('connection reset by peer at 10.0.0.3')

    monkeypatch.setattr(views, 'list_conversations', broken)
    client = APIClient()
    client.force_authenticate(user=patient)
    r = client.get('/api/conversations')
    assert r.status_code == 500
    assert r.data['error']['message'] == 'Internal server error'
    assert '10.0.0.3' not in str(r.data)


def test_ensure_test_users_is_idempotent():
    call_command('ensure_test_users')
    call_command('ensure_test_users')
    assert set(User.objects.values_list('role', flat=True)) == {'patient', 'doctor', 'admin'}
    assert Token.objects.count() == 3
    assert Appointment.objects.count() == 1


def test_healthz_reports_database():
    r = APIClient().get('/healthz')
    assert r.status_code == 200
    assert r.json() == {'ok': True, 'db': True}


def test_resolve_treats_malformed_id_as_invalid_input(patient, doctor):
    with pytest.raises(ValueError):
        resolve_conversation(patient, 'not-a-uuid')
    with pytest.raises(ValueError):
        resolve_conversation(doctor, '1234')
    assert not Conversation.objects.exists()


def test_store_enforces_type_and_length_after_stripping(patient, doctor, settings):
    conv = Conversation.objects.create(patient=patient, doctor=doctor)
    with pytest.raises(ValueError):
        send_message(conv, patient, 42)
    with pytest.raises(ValueError):
        send_message(conv, patient, 'x' * (settings.MESSAGE_MAX_LENGTH + 1))
    msg = send_message(conv, patient, '<p>glucose &lt; 5 &amp; stable</p>')
    assert msg.content == 'glucose < 5 & stable'


def test_admin_cannot_add_or_delete_thread_rows(patient, doctor):
    superuser = User.objects.create_superuser(username='root', password='P@ssw0rd1', email='root@example.com')
    request = RequestFactory().get('/admin/')
    request.user = superuser
    conv = Conversation.objects.create(patient=patient, doctor=doctor)
    msg = Message.objects.create(conversation=conv, sender=patient, content='hello')

    message_admin = admin.site._registry[Message]
    conversation_admin = admin.site._registry[Conversation]
    assert message_admin.has_add_permission(request) is False
    assert message_admin.has_delete_permission(request, msg) is False
    assert message_admin.has_change_permission(request, msg) is True
    assert conversation_admin.has_delete_permission(request, conv) is False
    for inline in conversation_admin.get_inline_instances(request, conv):
        assert inline.has_add_permission(request, conv) is False
        assert inline.has_delete_permission(request, conv) is False
