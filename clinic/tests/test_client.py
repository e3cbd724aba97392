from datetime import datetime

import pytest
import requests

from clinic.client import CONNECTION_ERROR, ApiError, HospitalApiClient


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload
        self.content = b'' if payload is None else b'{}'

    def json(self):
        if self._payload is None:
            raise ValueError('no json')
        return self._payload


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def test_connection_error_message():
    client = HospitalApiClient(session=FakeSession(requests.ConnectionError('refused')))
    with pytest.raises(ApiError) as exc:
        client.appointments()
    assert exc.value.message == CONNECTION_ERROR
    assert exc.value.status is None


def test_server_error_message_is_surfaced():
    session = FakeSession(FakeResponse(409, {'ok': False, 'error': 'You already have an active appointment.',
                                             'code': 'active_appointment_exists'}))
    client = HospitalApiClient(session=session)
    with pytest.raises(ApiError) as exc:
        client.book_appointment(doctor_id=1, appointment_date='2024-12-31', appointment_time='10:00:00')
    assert exc.value.message == 'You already have an active appointment.'
    assert exc.value.status == 409
    assert exc.value.code == 'active_appointment_exists'
    _, url, kwargs = session.calls[0]
    assert url.endswith('/api/appointments')
    assert kwargs['json']['appointment_time'] == '10:00'


def test_error_without_json_body():
    client = HospitalApiClient(session=FakeSession(FakeResponse(502)))
    with pytest.raises(ApiError) as exc:
        client.notifications()
    assert exc.value.message == 'Request failed with status 502'


def test_login_stores_tokens_and_sends_bearer():
    session = FakeSession(
        FakeResponse(200, {'ok': True, 'access': 'A', 'refresh': 'R', 'user': {'id': 3, 'role': 'patient'}}),
        FakeResponse(200, {'count': 2}),
    )
    client = HospitalApiClient('http://api.test/', session=session)
    assert client.login('p@example.com', 'secret')['id'] == 3
    assert client.unread_count() == 2
    method, url, kwargs = session.calls[1]
    assert (method, url) == ('GET', 'http://api.test/api/notifications/unread-count')
    assert kwargs['headers']['Authorization'] == 'Bearer A'


def test_unknown_doctor_has_no_slots():
    client = HospitalApiClient(session=FakeSession(FakeResponse(404, {'ok': False, 'error': 'Doctor not found.'})))
    assert client.available_slots(99, '2024-12-31') == []


def test_available_slots_filters_elapsed_times_today():
    client = HospitalApiClient(session=FakeSession(FakeResponse(200, ['14:00:00', '09:00', '10:00'])))
    now = datetime(2024, 12, 31, 10, 30)
    assert client.available_slots(1, '2024-12-31', now=now) == ['14:00']


def test_has_paid():
    client = HospitalApiClient(session=FakeSession(FakeResponse(200, {'has_paid': True, 'payments': []})))
    assert client.has_paid('consultation', 7) is True
