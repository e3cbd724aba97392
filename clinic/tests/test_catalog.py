import pytest
from django.core.management import call_command
from rest_framework.test import APIClient

from clinic.models import Doctor, Hospital, HospitalDepartment, Notification, User
from clinic.services import catalog

pytestmark = pytest.mark.django_db


def test_insurances_are_public(insurance80):
    r = APIClient().get('/api/insurances')
    assert r.status_code == 200
    assert r.json() == [{'id': insurance80.pk, 'name': 'RSSB', 'coverage_percentage': 80.0, 'description': ''}]


def test_catalog_requires_login(api, hospital):
    assert api().get('/api/hospitals').status_code == 401
    assert api(User.objects.create_user('x', 'x@example.com', 'pw')).get('/api/hospitals').status_code == 200


def test_doctor_filters_and_fee_fallback(api, patient, doctor, other_hospital, department):
    other = User.objects.create_user('doc3', 'doc3@example.com', 'pw', role='doctor')
    Doctor.objects.create(user=other, hospital=other_hospital, department=department, license_number='LIC-3',
                          consultation_fee=7000)
    client = api(patient)

    everyone = client.get('/api/doctors').json()
    assert len(everyone) == 2
    here = client.get('/api/doctors', {'hospital_id': doctor.hospital_id}).json()
    assert [d['id'] for d in here] == [doctor.pk]
    # A doctor without their own fee charges the hospital fee
    assert here[0]['consultation_fee'] == 5000.0
    there = client.get('/api/doctors', {'hospital_id': other_hospital.pk}).json()
    assert there[0]['consultation_fee'] == 7000.0

    assert client.get('/api/doctors', {'hospital_id': 'abc'}).status_code == 400


def test_hospital_departments(api, patient, hospital, department):
    HospitalDepartment.objects.create(hospital=hospital, department=department)
    r = api(patient).get(f'/api/hospitals/{hospital.pk}/departments')
    assert [d['name'] for d in r.json()] == ['General Medicine']


def test_lists_are_cached_until_invalidated(hospital):
    assert [h['name'] for h in catalog.list_hospitals()] == ['Kigali Hospital']
    Hospital.objects.create(name='Another', location='Huye')
    assert len(catalog.list_hospitals()) == 1
    assert catalog.invalidate() >= 1
    assert len(catalog.list_hospitals()) == 2


def test_refresh_catalog_command(hospital, lab_template):
    call_command('refresh_catalog')
    assert [t['name'] for t in catalog.list_lab_test_templates()] == ['Complete Blood Count']


def test_ensure_test_users_is_idempotent():
    call_command('ensure_test_users', password='S3cure-pass!')
    call_command('ensure_test_users', password='S3cure-pass!')
    assert User.objects.filter(email__endswith='1@example.com').count() == 6
    doctor = User.objects.get(email='doctor1@example.com')
    assert doctor.doctor_profile.hospital.name == 'Test Hospital'
    assert doctor.check_password('S3cure-pass!')


# ---------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------
def test_notification_inbox(api, patient, nurse):
    Notification.objects.create(user=patient, title='A', message='first', notification_type='appointment')
    second = Notification.objects.create(user=patient, title='B', message='second')
    Notification.objects.create(user=nurse, title='C', message='not yours')
    client = api(patient)

    assert client.get('/api/notifications/unread-count').json() == {'count': 2}
    r = client.post(f'/api/notifications/{second.pk}/read')
    assert r.status_code == 200 and r.json()['is_read'] is True
    assert client.get('/api/notifications/unread-count').json() == {'count': 1}

    unread = client.get('/api/notifications', {'unread': '1'}).json()
    assert [n['title'] for n in unread] == ['A']
    assert unread[0]['type'] == 'appointment'

    assert client.post('/api/notifications/read-all').json()['updated'] == 1
    assert client.get('/api/notifications/unread-count').json() == {'count': 0}


def test_cannot_read_someone_elses_notification(api, patient, nurse):
    n = Notification.objects.create(user=nurse, title='C', message='not yours')
    assert api(patient).post(f'/api/notifications/{n.pk}/read').status_code == 404


def test_only_staff_send_notifications(api, patient, nurse):
    payload = {'user_id': patient.pk, 'title': 'Reminder', 'message': 'Bring your card', 'type': 'general'}
    assert api(patient).post('/api/notifications', payload, format='json').status_code == 403
    r = api(nurse).post('/api/notifications', payload, format='json')
    assert r.status_code == 201
    assert Notification.objects.get(user=patient).title == 'Reminder'
