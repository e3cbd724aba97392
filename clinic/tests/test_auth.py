import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from clinic.models import AuditEvent, User

pytestmark = pytest.mark.django_db


def _register(client, **extra):
    payload = {
        'email': 'New.Patient@Example.com',
        'password': 'Str0ng-Passw0rd!',
        'full_name': 'New Patient',
        'phone': '0788123456',
    }
    payload.update(extra)
    return client.post(reverse('register_view'), payload, format='json')


def test_register_always_creates_patient(insurance80):
    r = _register(APIClient(), role='admin', insurance_id=insurance80.pk)
    assert r.status_code == 201, r.content
    body = r.json()
    assert body['ok'] is True
    assert body['access'] and body['refresh']
    assert body['user']['role'] == 'patient'
    assert body['user']['email'] == 'new.patient@example.com'
    assert body['user']['insurance']['name'] == 'RSSB'
    assert User.objects.get(email='new.patient@example.com').role == 'patient'


def test_register_duplicate_email(patient):
    r = _register(APIClient(), email='PATIENT@example.com')
    assert r.status_code == 400
    assert 'email' in r.json()['fields']


def test_register_weak_password():
    r = _register(APIClient(), password='12345678')
    assert r.status_code == 400
    assert not User.objects.exists()


def test_login_with_email(patient):
    r = APIClient().post(reverse('login_view'), {'email': 'Patient@Example.com', 'password': 'P@ssw0rd1'},
                         format='json')
    assert r.status_code == 200, r.content
    assert r.json()['user']['id'] == patient.pk
    assert AuditEvent.objects.filter(action='login', user=patient).exists()


def test_login_ignores_submitted_role(doctor):
    r = APIClient().post(reverse('login_view'),
                         {'email': 'doctor@example.com', 'password': 'P@ssw0rd1', 'role': 'admin'}, format='json')
    assert r.status_code == 200
    assert r.json()['user']['role'] == 'doctor'
    assert r.json()['user']['doctor_id'] == doctor.pk


@pytest.mark.parametrize('email,password', [
    ('patient@example.com', 'wrong'),
    ('nobody@example.com', 'P@ssw0rd1'),
])
def test_login_failure_is_generic(patient, email, password):
    r = APIClient().post(reverse('login_view'), {'email': email, 'password': password}, format='json')
    assert r.status_code == 401
    assert r.json() == {'ok': False, 'error': 'Invalid email or password.', 'code': 'invalid_credentials'}


def test_me_requires_authentication(api, patient):
    assert api().get(reverse('me_view')).status_code == 401
    r = api(patient).get(reverse('me_view'))
    assert r.status_code == 200
    assert r.json()['full_name'] == 'Pat Patient'


def test_update_insurance(api, patient, insurance80):
    r = api(patient).put(reverse('me_insurance_view'), {'insurance_id': insurance80.pk}, format='json')
    assert r.status_code == 200
    patient.refresh_from_db()
    assert patient.insurance_id == insurance80.pk
    r = api(patient).put(reverse('me_insurance_view'), {'insurance_id': None}, format='json')
    assert r.json()['insurance'] is None


def test_refresh_and_logout_blacklists_token(patient):
    client = APIClient()
    tokens = client.post(reverse('login_view'), {'email': 'patient@example.com', 'password': 'P@ssw0rd1'},
                         format='json').json()

    r = client.post(reverse('jwt_refresh_view'), {'refresh': tokens['refresh']}, format='json')
    assert r.status_code == 200
    assert r.json()['access']
    refresh = r.json().get('refresh', tokens['refresh'])

    client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.json()['access']}")
    r = client.post(reverse('jwt_logout_view'), {'refresh': refresh}, format='json')
    assert r.status_code == 200
    assert r.json()['blacklisted'] == 1

    r = client.post(reverse('jwt_refresh_view'), {'refresh': refresh}, format='json')
    assert r.status_code == 401


def test_health_endpoint():
    r = APIClient().get('/healthz')
    assert r.status_code == 200
