import pytest

from clinic.exceptions import PaymentRequiredError
from clinic.models import Appointment, Consultation, LabTestRequest, LabTestResult, Notification, Payment
from clinic.services import lab, payments
from clinic.tests.conftest import make_user

pytestmark = pytest.mark.django_db


@pytest.fixture
def lab_request(doctor, patient, lab_template, make_appointment):
    appt = make_appointment(patient, status=Appointment.STATUS_COMPLETED, paid=True)
    consultation = Consultation.objects.create(appointment=appt, patient=patient, doctor=doctor,
                                               diagnosis='Anemia', requires_lab_test=True)
    return LabTestRequest.objects.create(consultation=consultation, patient=patient, doctor=doctor,
                                         hospital=appt.hospital, lab_test_template=lab_template,
                                         total_price=lab_template.price)


def _pay(patient, req):
    return payments.record_payment(patient, payment_type=Payment.TYPE_LAB_TEST, reference_id=req.pk)


@pytest.mark.parametrize('current,new,allowed', [
    ('awaiting_payment', 'pending', True),
    ('pending', 'in_progress', True),
    ('in_progress', 'completed', True),
    ('awaiting_payment', 'in_progress', False),
    ('pending', 'completed', False),
    ('completed', 'in_progress', False),
])
def test_can_transition(current, new, allowed):
    assert lab.can_transition(current, new) is allowed


def test_unpaid_request_cannot_go_to_lab(api, patient, lab_request):
    r = api(patient).put(f'/api/lab-tests/requests/{lab_request.pk}', {'status': 'pending'}, format='json')
    assert r.status_code == 402
    assert r.json()['error'] == 'Please pay for this lab test first.'
    lab_request.refresh_from_db()
    assert lab_request.status == LabTestRequest.STATUS_AWAITING_PAYMENT


def test_full_lab_flow(api, patient, doctor, lab_tech, lab_request, django_capture_on_commit_callbacks):
    _pay(patient, lab_request)

    r = api(patient).put(f'/api/lab-tests/requests/{lab_request.pk}', {'status': 'pending'}, format='json')
    assert r.status_code == 200, r.content
    assert r.json()['status'] == 'pending'

    tech = api(lab_tech)
    r = tech.put(f'/api/lab-tests/requests/{lab_request.pk}', {'status': 'in_progress'}, format='json')
    assert r.status_code == 200
    assert r.json()['status'] == 'in_progress'

    with django_capture_on_commit_callbacks(execute=True):
        r = tech.post('/api/lab-tests/results', {
            'lab_test_request_id': lab_request.pk,
            'result_status': 'positive',
            'result_data': 'Hb 9.1 g/dL',
        }, format='json')
    assert r.status_code == 201, r.content
    assert r.json()['test_name'] == 'Complete Blood Count'

    lab_request.refresh_from_db()
    assert lab_request.status == LabTestRequest.STATUS_COMPLETED
    assert LabTestResult.objects.get(lab_test_request=lab_request).technician_id == lab_tech.pk
    assert Notification.objects.filter(user=patient, title='Lab Test Results Ready').exists()
    assert Notification.objects.filter(user=doctor.user, title='Lab Test Results Available').exists()

    results = api(patient).get('/api/lab-tests/results').json()
    assert [res['lab_test_request_id'] for res in results] == [lab_request.pk]


def test_start_requires_payment_even_for_technician(lab_tech, lab_request):
    lab_request.status = LabTestRequest.STATUS_PENDING
    lab_request.save()
    with pytest.raises(PaymentRequiredError) as exc:
        lab.update_request_status(lab_tech, lab_request.pk, status=LabTestRequest.STATUS_IN_PROGRESS)
    assert str(exc.value.detail) == 'Patient has not paid for this test yet.'


def test_cannot_complete_via_status_update(api, patient, lab_tech, lab_request):
    _pay(patient, lab_request)
    lab.update_request_status(patient, lab_request.pk, status=LabTestRequest.STATUS_PENDING)
    lab.update_request_status(lab_tech, lab_request.pk, status=LabTestRequest.STATUS_IN_PROGRESS)
    r = api(lab_tech).put(f'/api/lab-tests/requests/{lab_request.pk}', {'status': 'completed'}, format='json')
    assert r.status_code == 409


def test_result_requires_in_progress(api, patient, lab_tech, lab_request):
    _pay(patient, lab_request)
    r = api(lab_tech).post('/api/lab-tests/results', {
        'lab_test_request_id': lab_request.pk, 'result_status': 'negative', 'result_data': 'ok',
    }, format='json')
    assert r.status_code == 409
    assert not LabTestResult.objects.exists()


def test_technician_of_other_hospital_is_refused(api, patient, other_hospital, lab_request):
    _pay(patient, lab_request)
    lab.update_request_status(patient, lab_request.pk, status=LabTestRequest.STATUS_PENDING)
    outsider = make_user('lab2@example.com', 'lab_technician', hospital=other_hospital)
    r = api(outsider).put(f'/api/lab-tests/requests/{lab_request.pk}', {'status': 'in_progress'}, format='json')
    assert r.status_code == 403


def test_patient_cannot_start_processing(api, patient, lab_request):
    _pay(patient, lab_request)
    lab.update_request_status(patient, lab_request.pk, status=LabTestRequest.STATUS_PENDING)
    r = api(patient).put(f'/api/lab-tests/requests/{lab_request.pk}', {'status': 'in_progress'}, format='json')
    assert r.status_code == 403


def test_doctor_requests_more_tests(api, doctor, lab_request, lab_template, lab_template2):
    r = api(doctor.user).post('/api/lab-tests/requests', {
        'consultation_id': lab_request.consultation_id,
        'lab_test_template_ids': [lab_template.pk, lab_template2.pk],
    }, format='json')
    assert r.status_code == 201, r.content
    assert [req['lab_test_template_id'] for req in r.json()] == [lab_template2.pk]
    assert LabTestRequest.objects.count() == 2


def test_lab_tech_sees_hospital_queue(api, lab_tech, lab_request, other_hospital):
    outsider = make_user('lab3@example.com', 'lab_technician', hospital=other_hospital)
    assert [r['id'] for r in api(lab_tech).get('/api/lab-tests/requests').json()] == [lab_request.pk]
    assert api(outsider).get('/api/lab-tests/requests').json() == []
