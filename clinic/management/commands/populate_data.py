"""
Management command to populate the database with demo data.
"""
from decimal import Decimal

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.db import transaction

from clinic.models import (
    Department,
    Doctor,
    Hospital,
    HospitalDepartment,
    Insurance,
    LabTestTemplate,
    Medication,
    Pharmacy,
    User,
)
from clinic.services import catalog

DEMO_PASSWORD = 'Passw0rd!123'


class Command(BaseCommand):
    help = 'Populate database with demo hospitals, staff and catalog data'

    def add_arguments(self, parser):
        parser.add_argument('--password', default=DEMO_PASSWORD, help='Password for every demo account')

    @transaction.atomic
    def handle(self, *args, **options):
        self.password = make_password(options['password'])
        self.stdout.write('Creating demo data...')

        insurances = self.create_insurances()
        hospitals = self.create_hospitals()
        departments = self.create_departments(hospitals)
        self.create_doctors(hospitals, departments)
        self.create_staff(hospitals)
        self.create_patients(insurances)
        self.create_lab_test_templates()
        self.create_medications()
        self.create_pharmacies()

        catalog.invalidate()
        self.stdout.write(self.style.SUCCESS('Demo data created.'))

    def _user(self, email, role, full_name, **extra):
        user, created = User.objects.get_or_create(
            email=email,
            defaults={'username': email, 'role': role, 'full_name': full_name, 'password': self.password, **extra},
        )
        if created:
            self.stdout.write(f'  user {email} ({role})')
        return user

    def create_insurances(self):
        data = [
            ('RSSB', Decimal('85'), 'Rwanda Social Security Board medical scheme'),
            ('MMI', Decimal('80'), 'Military Medical Insurance'),
            ('Mutuelle de Santé', Decimal('90'), 'Community based health insurance'),
            ('Private Basic', Decimal('50'), 'Entry level private cover'),
        ]
        result = []
        for name, coverage, description in data:
            ins, _ = Insurance.objects.get_or_create(
                name=name, defaults={'coverage_percentage': coverage, 'description': description}
            )
            result.append(ins)
        return result

    def create_hospitals(self):
        data = [
            ('Kigali University Teaching Hospital', 'Kigali', Decimal('5000')),
            ('Butaro District Hospital', 'Burera', Decimal('3000')),
        ]
        return [
            Hospital.objects.get_or_create(name=name, defaults={'location': location, 'consultation_fee': fee})[0]
            for name, location, fee in data
        ]

    def create_departments(self, hospitals):
        names = ['General Medicine', 'Pediatrics', 'Cardiology', 'Maternity']
        departments = [Department.objects.get_or_create(name=n)[0] for n in names]
        for hospital in hospitals:
            for department in departments:
                HospitalDepartment.objects.get_or_create(hospital=hospital, department=department)
        return departments

    def create_doctors(self, hospitals, departments):
        morning_and_afternoon = [{'start': '08:00', 'end': '12:00'}, {'start': '14:00', 'end': '17:00'}]
        n = 0
        for hospital in hospitals:
            for department in departments:
                n += 1
                user = self._user(f'doctor{n}@example.com', User.ROLE_DOCTOR, f'Doctor {n}')
                Doctor.objects.get_or_create(
                    user=user,
                    defaults={
                        'hospital': hospital,
                        'department': department,
                        'specialization': department.name,
                        'license_number': f'RMDC-{1000 + n}',
                        # Every other doctor uses the hospital fee
                        'consultation_fee': Decimal('8000') if n % 2 == 0 else Decimal('0'),
                        'working_days': [0, 1, 2, 3, 4, 5] if n % 3 == 0 else [],
                        'working_hours': morning_and_afternoon if n % 2 else [],
                        'slot_minutes': 20 if n % 4 == 0 else 0,
                    },
                )

    def create_staff(self, hospitals):
        for i, hospital in enumerate(hospitals, start=1):
            self._user(f'nurse{i}@example.com', User.ROLE_NURSE, f'Nurse {i}', hospital=hospital)
            self._user(f'lab{i}@example.com', User.ROLE_LAB_TECHNICIAN, f'Lab Technician {i}', hospital=hospital)
        admin = self._user('admin@example.com', User.ROLE_ADMIN, 'Administrator', is_staff=True, is_superuser=True)
        return admin

    def create_patients(self, insurances):
        for i in range(1, 6):
            insurance = insurances[i % len(insurances)] if i % 2 else None
            self._user(f'patient{i}@example.com', User.ROLE_PATIENT, f'Patient {i}',
                       phone=f'07880000{i:02d}', insurance=insurance)

    def create_lab_test_templates(self):
        data = [
            ('Complete Blood Count', 'Hematology', Decimal('10000')),
            ('Malaria Rapid Test', 'Parasitology', Decimal('3000')),
            ('Urinalysis', 'Chemistry', Decimal('4000')),
            ('Blood Glucose', 'Chemistry', Decimal('2500')),
            ('Chest X-Ray', 'Radiology', Decimal('15000')),
        ]
        for name, category, price in data:
            LabTestTemplate.objects.get_or_create(name=name, defaults={'category': category, 'price': price})

    def create_medications(self):
        data = [
            ('Paracetamol 500mg', 'Analgesic', Decimal('100'), False),
            ('Amoxicillin 500mg', 'Antibiotic', Decimal('250'), True),
            ('Artemether/Lumefantrine', 'Antimalarial', Decimal('1500'), True),
            ('Ibuprofen 400mg', 'Analgesic', Decimal('150'), False),
            ('Metformin 850mg', 'Antidiabetic', Decimal('200'), True),
        ]
        for name, category, price, rx_only in data:
            Medication.objects.get_or_create(
                name=name,
                defaults={'category': category, 'unit_price': price, 'stock_quantity': 500,
                          'requires_prescription': rx_only},
            )

    def create_pharmacies(self):
        data = [
            ('Pharmacie Conseil', 'Kigali', -1.9441, 30.0619),
            ('Vine Pharmacy', 'Musanze', -1.4996, 29.6344),
        ]
        for i, (name, location, lat, lng) in enumerate(data, start=1):
            pharmacist = self._user(f'pharmacist{i}@example.com', User.ROLE_PHARMACIST, f'Pharmacist {i}')
            Pharmacy.objects.get_or_create(
                name=name,
                defaults={'location': location, 'latitude': lat, 'longitude': lng, 'pharmacist': pharmacist},
            )
