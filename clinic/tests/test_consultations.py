import pytest

from clinic.models import Appointment, Consultation, LabTestRequest, Notification
from clinic.services import consultations, notifications

pytestmark = pytest.mark.django_db


def _save(client, appt, **extra):
    payload = {'appointment_id': appt.pk, 'diagnosis': 'Malaria', 'notes': 'Rest and fluids'}
    payload.update(extra)
    return client.post('/api/consultations', payload, format='json')


def test_unpaid_appointment_cannot_be_consulted(api, doctor, patient, make_appointment):
    appt = make_appointment(patient, status=Appointment.STATUS_APPROVED)
    r = _save(api(doctor.user), appt)
    assert r.status_code == 402
    assert not Consultation.objects.exists()


def test_pending_appointment_cannot_be_consulted(api, doctor, patient, make_appointment):
    appt = make_appointment(patient)
    r = _save(api(doctor.user), appt)
    assert r.status_code == 409


def test_diagnosis_is_required(api, doctor, patient, make_appointment):
    appt = make_appointment(patient, status=Appointment.STATUS_APPROVED, paid=True)
    r = _save(api(doctor.user), appt, diagnosis='')
    assert r.status_code == 400
    assert not Consultation.objects.exists()


def test_only_assigned_doctor(api, other_doctor, nurse, patient, make_appointment):
    appt = make_appointment(patient, status=Appointment.STATUS_APPROVED, paid=True)
    assert _save(api(other_doctor.user), appt).status_code == 403
    assert _save(api(nurse), appt).status_code == 403


def test_no_prescription_completes_appointment(api, doctor, patient, make_appointment,
                                                django_capture_on_commit_callbacks):
    appt = make_appointment(patient, status=Appointment.STATUS_APPROVED, paid=True)
    with django_capture_on_commit_callbacks(execute=True):
        r = _save(api(doctor.user), appt)
    assert r.status_code == 201, r.content
    assert r.json()['diagnosis'] == 'Malaria'
    appt.refresh_from_db()
    assert appt.status == Appointment.STATUS_COMPLETED
    n = Notification.objects.get(user=patient, title='Consultation Completed')
    assert n.message == 'Rest and fluids'


def test_prescription_needed_keeps_appointment_open(api, doctor, patient, make_appointment):
    appt = make_appointment(patient, status=Appointment.STATUS_APPROVED, paid=True)
    r = _save(api(doctor.user), appt, requires_prescription=True)
    assert r.status_code == 201
    appt.refresh_from_db()
    assert appt.status == Appointment.STATUS_APPROVED


def test_lab_requests_are_idempotent(doctor, patient, lab_template, lab_template2, make_appointment,
                                     django_capture_on_commit_callbacks):
    appt = make_appointment(patient, status=Appointment.STATUS_APPROVED, paid=True)
    with django_capture_on_commit_callbacks(execute=True):
        consultation, created = consultations.save_consultation(
            doctor.user, appointment_id=appt.pk, diagnosis='Anemia', requires_lab_test=True,
            requires_prescription=True, lab_test_template_ids=[lab_template.pk],
        )
    assert len(created) == 1
    assert created[0].status == LabTestRequest.STATUS_AWAITING_PAYMENT
    assert created[0].total_price == lab_template.price
    n = Notification.objects.get(user=patient, title='Lab Tests Required')
    assert n.message == 'Doctor has prescribed 1 lab test(s). Total: 10,000 RWF. Please proceed with payment.'

    # Saving again with the same template adds nothing; a new template is added once
    again, created = consultations.save_consultation(
        doctor.user, appointment_id=appt.pk, diagnosis='Anemia', requires_lab_test=True,
        requires_prescription=True, lab_test_template_ids=[lab_template.pk, lab_template2.pk],
    )
    assert again.pk == consultation.pk
    assert [r.lab_test_template_id for r in created] == [lab_template2.pk]
    assert LabTestRequest.objects.filter(consultation=consultation).count() == 2
    assert Consultation.objects.count() == 1


def test_lab_flag_without_templates_still_saves(api, doctor, patient, make_appointment):
    appt = make_appointment(patient, status=Appointment.STATUS_APPROVED, paid=True)
    r = _save(api(doctor.user), appt, diagnosis='flu', requires_lab_test=True, lab_test_template_ids=[])
    assert r.status_code == 201, r.content
    assert r.json()['lab_test_requests'] == []
    assert not LabTestRequest.objects.exists()
    appt.refresh_from_db()
    assert appt.status == Appointment.STATUS_COMPLETED


def test_lab_flag_survives_resave_once_tests_exist(doctor, patient, lab_template, make_appointment):
    appt = make_appointment(patient, status=Appointment.STATUS_APPROVED, paid=True)
    consultations.save_consultation(doctor.user, appointment_id=appt.pk, diagnosis='Anemia',
                                    requires_lab_test=True, lab_test_template_ids=[lab_template.pk])
    again, created = consultations.save_consultation(doctor.user, appointment_id=appt.pk, diagnosis='Anemia, mild',
                                                     requires_lab_test=False)
    assert created == []
    assert again.requires_lab_test is True
    assert again.diagnosis == 'Anemia, mild'
    assert LabTestRequest.objects.filter(consultation=again).count() == 1


def test_failed_notification_does_not_undo_completion(api, doctor, patient, make_appointment, monkeypatch,
                                                      django_capture_on_commit_callbacks):
    def broken(*args, **kwargs):
        raise RuntimeError('notification store down')

    monkeypatch.setattr(notifications, 'create_notification', broken)
    appt = make_appointment(patient, status=Appointment.STATUS_APPROVED, paid=True)
    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        r = _save(api(doctor.user), appt, diagnosis='flu')
    assert r.status_code == 201, r.content
    assert callbacks
    appt.refresh_from_db()
    assert appt.status == Appointment.STATUS_COMPLETED
    assert Consultation.objects.filter(appointment=appt, diagnosis='flu').exists()
    assert not Notification.objects.exists()


def test_resave_on_completed_appointment_updates_in_place(api, doctor, patient, make_appointment):
    appt = make_appointment(patient, status=Appointment.STATUS_APPROVED, paid=True)
    client = api(doctor.user)
    first = _save(client, appt).json()
    r = client.put(f"/api/consultations/{first['id']}", {'diagnosis': 'Typhoid', 'notes': ''}, format='json')
    assert r.status_code == 200, r.content
    assert r.json()['diagnosis'] == 'Typhoid'
    assert Consultation.objects.count() == 1
    appt.refresh_from_db()
    assert appt.status == Appointment.STATUS_COMPLETED


def test_markup_is_stripped(doctor, patient, make_appointment):
    appt = make_appointment(patient, status=Appointment.STATUS_APPROVED, paid=True)
    consultation, _ = consultations.save_consultation(
        doctor.user, appointment_id=appt.pk, diagnosis='<b>Flu</b><script>x</script>',
        requires_prescription=True,
    )
    assert '<' not in consultation.diagnosis
    assert 'Flu' in consultation.diagnosis


def test_patient_sees_own_consultations(api, doctor, patient, insured_patient, make_appointment):
    appt = make_appointment(patient, status=Appointment.STATUS_APPROVED, paid=True)
    consultations.save_consultation(doctor.user, appointment_id=appt.pk, diagnosis='Flu')
    assert len(api(patient).get('/api/consultations').json()) == 1
    assert api(insured_patient).get('/api/consultations').json() == []
