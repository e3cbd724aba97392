"""
URL mappings for the hospital workflow API.

Trailing slashes are deliberately omitted; clients call the paths
exactly as listed here.
"""
from django.urls import include, path

from .auth_views import (
    jwt_logout_view,
    jwt_refresh_view,
    login_view,
    me_insurance_view,
    me_view,
    register_view,
)
from .views import appointments, catalog, consultations, health, lab, notifications, payments, prescriptions


urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz),

    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/register', register_view, name='register_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh_view'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout_view'),
    path('api/auth/me', me_view, name='me_view'),
    path('api/auth/me/insurance', me_insurance_view, name='me_insurance_view'),

    # Catalog (read-only)
    path('api/hospitals', catalog.hospitals),
    path('api/hospitals/<int:pk>/departments', catalog.hospital_departments),
    path('api/departments', catalog.departments),
    path('api/doctors', catalog.doctors),
    path('api/insurances', catalog.insurances),
    path('api/lab-tests/templates', catalog.lab_test_templates),
    path('api/medications', catalog.medications),
    path('api/pharmacies', catalog.pharmacies),

    # Appointments
    path('api/appointments', appointments.appointments, name='appointments'),
    path('api/appointments/available/<int:doctor_id>/<str:date>', appointments.available_slots,
         name='available_slots'),
    path('api/appointments/<int:pk>', appointments.appointment_detail, name='appointment_detail'),
    path('api/appointments/<int:pk>/start-consultation', appointments.start_consultation,
         name='start_consultation'),

    # Consultations
    path('api/consultations', consultations.consultations, name='consultations'),
    path('api/consultations/<int:pk>', consultations.consultation_detail, name='consultation_detail'),

    # Lab tests
    path('api/lab-tests/requests', lab.lab_requests, name='lab_requests'),
    path('api/lab-tests/requests/<int:pk>', lab.lab_request_detail, name='lab_request_detail'),
    path('api/lab-tests/results', lab.lab_results, name='lab_results'),

    # Prescriptions
    path('api/prescriptions', prescriptions.prescriptions, name='prescriptions'),
    path('api/prescriptions/<int:pk>', prescriptions.prescription_detail, name='prescription_detail'),

    # Payments
    path('api/payments', payments.payments, name='payments'),
    path('api/payments/reference/<str:payment_type>/<int:reference_id>', payments.payment_lookup,
         name='payment_lookup'),

    # Notifications
    path('api/notifications', notifications.notifications, name='notifications'),
    path('api/notifications/unread-count', notifications.unread_count, name='notifications_unread_count'),
    path('api/notifications/read-all', notifications.read_all, name='notifications_read_all'),
    path('api/notifications/<int:pk>/read', notifications.mark_read, name='notification_read'),
]
