# clinic/management/commands/ensure_test_users.py
from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand

from clinic.models import Department, Doctor, Hospital, Pharmacy, User

TEST_SET = [
    ("patient1@example.com", "patient", "Test Patient"),
    ("doctor1@example.com", "doctor", "Test Doctor"),
    ("nurse1@example.com", "nurse", "Test Nurse"),
    ("lab1@example.com", "lab_technician", "Test Lab Technician"),
    ("pharmacist1@example.com", "pharmacist", "Test Pharmacist"),
    ("admin1@example.com", "admin", "Test Admin"),
]


class Command(BaseCommand):
    help = "Ensure one test user per role exists (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="Passw0rd!123", help="Password set on every test user")

    def handle(self, *args, **opts):
        password = make_password(opts["password"])
        hospital, _ = Hospital.objects.get_or_create(
            name="Test Hospital", defaults={"location": "Kigali", "consultation_fee": 5000}
        )
        department, _ = Department.objects.get_or_create(name="General Medicine")
        hospital.hospital_departments.get_or_create(department=department)

        for email, role, name in TEST_SET:
            u, created = User.objects.get_or_create(
                email=email,
                defaults={"username": email, "role": role, "full_name": name, "password": password, "is_active": True},
            )
            if not created:
                # Reset password, role and activation
                u.password = password
                u.role = role
                u.is_active = True
                u.save(update_fields=["password", "role", "is_active"])
            if role in ("nurse", "lab_technician") and u.hospital_id != hospital.id:
                u.hospital = hospital
                u.save(update_fields=["hospital"])
            if role == "doctor":
                Doctor.objects.get_or_create(
                    user=u,
                    defaults={"hospital": hospital, "department": department, "license_number": f"TEST-{u.id}"},
                )
            if role == "pharmacist":
                Pharmacy.objects.get_or_create(name="Test Pharmacy", defaults={"location": "Kigali", "pharmacist": u})
            if role == "admin" and not u.is_staff:
                u.is_staff = True
                u.is_superuser = True
                u.save(update_fields=["is_staff", "is_superuser"])
            self.stdout.write(self.style.SUCCESS(f"ok: {email} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
