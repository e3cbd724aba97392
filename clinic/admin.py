"""
Django admin registrations for the clinic models.

Catalog data (hospitals, departments, doctors, insurances, lab test
templates, medications, pharmacies) has no REST write surface and is
maintained here.  Workflow records are registered so staff can inspect
them; their status changes should still go through the API so that the
payment gates apply.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import (
    Appointment,
    AuditEvent,
    Consultation,
    Department,
    Doctor,
    Hospital,
    HospitalDepartment,
    Insurance,
    LabTestRequest,
    LabTestResult,
    LabTestTemplate,
    Medication,
    Notification,
    Payment,
    Pharmacy,
    Prescription,
    User,
)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'email', 'full_name', 'role', 'hospital', 'insurance', 'is_staff')
    list_filter = ('role', 'hospital')
    search_fields = ('username', 'email', 'full_name', 'phone', 'national_id')
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Clinic', {'fields': ('role', 'full_name', 'phone', 'national_id', 'insurance', 'hospital')}),
    )


@admin.register(Insurance)
class InsuranceAdmin(admin.ModelAdmin):
    list_display = ('name', 'coverage_percentage', 'created_at')
    search_fields = ('name',)


class HospitalDepartmentInline(admin.TabularInline):
    model = HospitalDepartment
    extra = 0


@admin.register(Hospital)
class HospitalAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'location', 'consultation_fee', 'created_at')
    search_fields = ('name', 'location')
    inlines = [HospitalDepartmentInline]


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'name')
    search_fields = ('name',)


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('user', 'hospital', 'department', 'specialization', 'consultation_fee', 'slot_minutes')
    list_filter = ('hospital', 'department')
    search_fields = ('user__full_name', 'user__email', 'license_number', 'specialization')


@admin.register(Pharmacy)
class PharmacyAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'location', 'pharmacist')
    search_fields = ('name', 'location')


@admin.register(Medication)
class MedicationAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'unit_price', 'stock_quantity', 'requires_prescription')
    list_filter = ('category', 'requires_prescription')
    search_fields = ('name',)


@admin.register(LabTestTemplate)
class LabTestTemplateAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'price')
    search_fields = ('name', 'category')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'hospital', 'appointment_date', 'appointment_time', 'status')
    list_filter = ('status', 'hospital', 'department')
    search_fields = ('patient__full_name', 'patient__email')
    date_hierarchy = 'appointment_date'


@admin.register(Consultation)
class ConsultationAdmin(admin.ModelAdmin):
    list_display = ('id', 'appointment', 'patient', 'doctor', 'requires_lab_test', 'requires_prescription')
    search_fields = ('patient__full_name', 'diagnosis')


@admin.register(LabTestRequest)
class LabTestRequestAdmin(admin.ModelAdmin):
    list_display = ('id', 'lab_test_template', 'patient', 'hospital', 'status', 'total_price')
    list_filter = ('status', 'hospital')


@admin.register(LabTestResult)
class LabTestResultAdmin(admin.ModelAdmin):
    list_display = ('id', 'lab_test_request', 'result_status', 'technician', 'completed_at')
    list_filter = ('result_status',)


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ('id', 'medication', 'patient', 'pharmacy', 'status', 'total_price')
    list_filter = ('status', 'pharmacy')


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('transaction_id', 'patient', 'payment_type', 'reference_id', 'amount', 'patient_pays', 'status')
    list_filter = ('payment_type', 'status', 'payment_method')
    search_fields = ('transaction_id', 'patient__email')


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'title', 'notification_type', 'is_read', 'created_at')
    list_filter = ('notification_type', 'is_read')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('id', 'action', 'object_type', 'object_id', 'user', 'created_at')
    list_filter = ('action', 'object_type')
    readonly_fields = ('user', 'action', 'object_type', 'object_id', 'detail', 'created_at')
