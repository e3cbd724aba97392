"""
Database models for the hospital workflow backend.

These models capture the catalog (hospitals, departments, doctors,
insurances, lab test templates, medications, pharmacies) and the
workflow records that move through a status lifecycle: appointments,
consultations, lab test requests/results, prescriptions and payments.
Notifications and audit events are side channels that never gate a
transition.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class Insurance(models.Model):
    """An insurer and the share of every bill it covers."""
    name = models.CharField(max_length=255, unique=True)
    coverage_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.coverage_percentage}%)"


class Hospital(models.Model):
    name = models.CharField(max_length=255)
    location = models.CharField(max_length=255)
    phone = models.CharField(max_length=32, blank=True)
    email = models.EmailField(blank=True)
    description = models.TextField(blank=True)
    consultation_fee = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class Department(models.Model):
    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class HospitalDepartment(models.Model):
    """Which departments a hospital runs."""
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='hospital_departments')
    department = models.ForeignKey(Department, on_delete=models.CASCADE, related_name='hospital_departments')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = [('hospital', 'department')]

    def __str__(self) -> str:
        return f"{self.department} @ {self.hospital}"


class User(AbstractUser):
    """Custom user model with a workflow role.

    Patients may carry an insurance.  Nurses and lab technicians are bound
    to the hospital whose queue they work; doctors keep their hospital on
    :class:`Doctor`; pharmacists are linked through :class:`Pharmacy`.
    """
    ROLE_PATIENT = 'patient'
    ROLE_DOCTOR = 'doctor'
    ROLE_NURSE = 'nurse'
    ROLE_LAB_TECHNICIAN = 'lab_technician'
    ROLE_PHARMACIST = 'pharmacist'
    ROLE_ADMIN = 'admin'
    ROLE_CHOICES = [
        (ROLE_PATIENT, 'Patient'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_NURSE, 'Nurse'),
        (ROLE_LAB_TECHNICIAN, 'Lab technician'),
        (ROLE_PHARMACIST, 'Pharmacist'),
        (ROLE_ADMIN, 'Administrator'),
    ]
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_PATIENT, db_index=True)
    full_name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    national_id = models.CharField(max_length=32, blank=True)
    insurance = models.ForeignKey(
        Insurance, null=True, blank=True, on_delete=models.SET_NULL, related_name='members'
    )
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='staff'
    )

    @property
    def display_name(self) -> str:
        return self.full_name or self.get_full_name() or self.username

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Doctor(models.Model):
    """Practice details for a user with the doctor role.

    ``working_hours`` mirrors the department configuration format
    (``[{"start": "08:00", "end": "12:00"}, ...]``); empty values fall back
    to the project defaults in settings.
    """
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='doctor_profile')
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='doctors')
    department = models.ForeignKey(Department, on_delete=models.CASCADE, related_name='doctors')
    specialization = models.CharField(max_length=255, blank=True)
    license_number = models.CharField(max_length=64, unique=True)
    consultation_fee = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    signature_data = models.TextField(blank=True)
    working_days = models.JSONField(default=list, blank=True, help_text="Weekdays 0=Mon..6=Sun")
    working_hours = models.JSONField(default=list, blank=True, help_text="[{start, end}] in HH:MM")
    slot_minutes = models.PositiveIntegerField(default=0, help_text="0 uses the project default")
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"Dr. {self.user.display_name}"


class Pharmacy(models.Model):
    name = models.CharField(max_length=255)
    location = models.CharField(max_length=255)
    phone = models.CharField(max_length=32, blank=True)
    email = models.EmailField(blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    pharmacist = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='pharmacies'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = 'pharmacies'

    def __str__(self) -> str:
        return self.name


class Medication(models.Model):
    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=64, blank=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    stock_quantity = models.PositiveIntegerField(default=0)
    requires_prescription = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class LabTestTemplate(models.Model):
    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    category = models.CharField(max_length=64, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.price})"


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------

class Appointment(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_COMPLETED = 'completed'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
        (STATUS_COMPLETED, 'Completed'),
    ]
    ACTIVE_STATUSES = (STATUS_PENDING, STATUS_APPROVED)
    # Statuses that keep a doctor's slot occupied
    BOOKED_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_COMPLETED)

    patient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='appointments')
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='appointments')
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='appointments')
    department = models.ForeignKey(Department, on_delete=models.CASCADE, related_name='appointments')
    appointment_date = models.DateField()
    appointment_time = models.TimeField()
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    reason = models.TextField(blank=True)
    rejection_reason = models.TextField(blank=True)
    weight = models.FloatField(null=True, blank=True)
    temperature = models.FloatField(null=True, blank=True)
    vitals_recorded_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='recorded_vitals'
    )
    vitals_recorded_at = models.DateTimeField(null=True, blank=True)
    consultation_fee = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['doctor', 'appointment_date'], name='appt_doctor_date_idx'),
            models.Index(fields=['hospital', 'status'], name='appt_hospital_status_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['patient'],
                condition=Q(status__in=['pending', 'approved']),
                name='one_active_appointment_per_patient',
            ),
            models.UniqueConstraint(
                fields=['doctor', 'appointment_date', 'appointment_time'],
                condition=Q(status__in=['pending', 'approved', 'completed']),
                name='one_booking_per_doctor_slot',
            ),
        ]

    def __str__(self) -> str:
        return f"appt {self.id} {self.appointment_date} {self.appointment_time:%H:%M} [{self.status}]"


class Consultation(models.Model):
    """The doctor's record for one appointment (at most one per appointment)."""
    appointment = models.OneToOneField(Appointment, on_delete=models.CASCADE, related_name='consultation')
    patient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='consultations')
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='consultations')
    diagnosis = models.TextField()
    notes = models.TextField(blank=True)
    requires_lab_test = models.BooleanField(default=False)
    requires_prescription = models.BooleanField(default=False)
    consultation_date = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"consultation {self.id} appt={self.appointment_id}"


class LabTestRequest(models.Model):
    STATUS_AWAITING_PAYMENT = 'awaiting_payment'
    STATUS_PENDING = 'pending'
    STATUS_IN_PROGRESS = 'in_progress'
    STATUS_COMPLETED = 'completed'
    STATUS_CHOICES = [
        (STATUS_AWAITING_PAYMENT, 'Awaiting payment'),
        (STATUS_PENDING, 'Pending'),
        (STATUS_IN_PROGRESS, 'In progress'),
        (STATUS_COMPLETED, 'Completed'),
    ]

    consultation = models.ForeignKey(Consultation, on_delete=models.CASCADE, related_name='lab_test_requests')
    patient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='lab_test_requests')
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='lab_test_requests')
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='lab_test_requests'
    )
    lab_test_template = models.ForeignKey(LabTestTemplate, on_delete=models.PROTECT, related_name='requests')
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default=STATUS_AWAITING_PAYMENT, db_index=True
    )
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['consultation', 'lab_test_template'],
                name='one_request_per_template_per_consultation',
            ),
        ]

    def __str__(self) -> str:
        return f"lab {self.id} {self.lab_test_template_id} [{self.status}]"


class LabTestResult(models.Model):
    RESULT_POSITIVE = 'positive'
    RESULT_NEGATIVE = 'negative'
    RESULT_INCONCLUSIVE = 'inconclusive'
    RESULT_CHOICES = [
        (RESULT_POSITIVE, 'Positive'),
        (RESULT_NEGATIVE, 'Negative'),
        (RESULT_INCONCLUSIVE, 'Inconclusive'),
    ]

    lab_test_request = models.OneToOneField(LabTestRequest, on_delete=models.CASCADE, related_name='result')
    technician = models.ForeignKey(User, on_delete=models.PROTECT, related_name='lab_results')
    result_status = models.CharField(max_length=16, choices=RESULT_CHOICES)
    result_data = models.TextField()
    notes = models.TextField(blank=True)
    completed_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"result {self.id} req={self.lab_test_request_id} {self.result_status}"


class Prescription(models.Model):
    """One prescribed medication.

    Price fields stay null until a pharmacist approves.  A row without a
    medication cannot be approved, only rejected.
    """
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_PAID = 'paid'
    STATUS_COMPLETED = 'completed'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_PAID, 'Paid'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    consultation = models.ForeignKey(Consultation, on_delete=models.CASCADE, related_name='prescriptions')
    patient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='prescriptions')
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='prescriptions')
    medication = models.ForeignKey(
        Medication, null=True, blank=True, on_delete=models.SET_NULL, related_name='prescriptions'
    )
    quantity = models.PositiveIntegerField(default=1)
    dosage = models.CharField(max_length=255, blank=True)
    instructions = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    signature_data = models.TextField(blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    pharmacy = models.ForeignKey(
        Pharmacy, null=True, blank=True, on_delete=models.SET_NULL, related_name='prescriptions'
    )
    pharmacist = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='reviewed_prescriptions'
    )
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    total_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    pharmacist_approved_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"rx {self.id} med={self.medication_id} [{self.status}]"


class Payment(models.Model):
    TYPE_CONSULTATION = 'consultation'
    TYPE_LAB_TEST = 'lab_test'
    TYPE_MEDICATION = 'medication'
    TYPE_CHOICES = [
        (TYPE_CONSULTATION, 'Consultation'),
        (TYPE_LAB_TEST, 'Lab test'),
        (TYPE_MEDICATION, 'Medication'),
    ]

    STATUS_PENDING = 'pending'
    STATUS_COMPLETED = 'completed'
    STATUS_FAILED = 'failed'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_FAILED, 'Failed'),
    ]

    METHOD_CHOICES = [
        ('mobile_money', 'Mobile money'),
        ('cash', 'Cash'),
        ('card', 'Card'),
    ]

    patient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='payments')
    payment_type = models.CharField(max_length=16, choices=TYPE_CHOICES)
    reference_id = models.PositiveBigIntegerField()
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    insurance_coverage = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    patient_pays = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_COMPLETED)
    payment_method = models.CharField(max_length=16, choices=METHOD_CHOICES, default='mobile_money')
    phone_number = models.CharField(max_length=32, blank=True)
    transaction_id = models.CharField(max_length=64, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['payment_type', 'reference_id', 'status'], name='payment_reference_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.transaction_id} {self.payment_type}:{self.reference_id} [{self.status}]"


class Notification(models.Model):
    TYPE_CHOICES = [
        ('appointment', 'Appointment'),
        ('consultation', 'Consultation'),
        ('lab_test', 'Lab test'),
        ('prescription', 'Prescription'),
        ('payment', 'Payment'),
        ('general', 'General'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    title = models.CharField(max_length=255)
    message = models.TextField()
    notification_type = models.CharField(max_length=16, choices=TYPE_CHOICES, default='general')
    reference_id = models.CharField(max_length=64, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=['user', 'is_read', 'created_at'], name='notif_user_unread_idx')]

    def __str__(self) -> str:
        return f"notif {self.id} -> {self.user_id}: {self.title}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.action}:{self.object_type}#{self.object_id}"
