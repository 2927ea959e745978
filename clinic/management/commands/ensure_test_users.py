# clinic/management/commands/ensure_test_users.py
from datetime import timedelta

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.utils import timezone
from rest_framework.authtoken.models import Token

from clinic.models import Appointment, DoctorProfile, User

TEST_SET = [
    ("patient1", "patient", "Pat", "Lee"),
    ("doctor1", "doctor", "Dana", "Cho"),
    ("admin1", "admin", "Ada", "Min"),
]


class Command(BaseCommand):
    help = "Ensure test users exist with password=123456 and print their API tokens (idempotent)."

    def handle(self, *args, **opts):
        users = {}
        for username, role, first, last in TEST_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={"role": role, "first_name": first, "last_name": last,
                          "password": make_password("123456"), "is_active": True},
            )
            if not created:
                u.password = make_password("123456")
                u.role = role
                u.is_active = True
                u.save(update_fields=["password", "role", "is_active"])
            token, _ = Token.objects.get_or_create(user=u)
            users[role] = u
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role}) id={u.id} token={token.key}"))

        DoctorProfile.objects.get_or_create(user=users["doctor"], defaults={"specialization": "General Practice"})
        # an appointment makes the doctor show up as a virtual conversation for the patient
        Appointment.objects.get_or_create(
            patient=users["patient"], doctor=users["doctor"],
            defaults={"scheduled_at": timezone.now() + timedelta(days=1)},
        )
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
