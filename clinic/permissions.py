"""
Custom permission classes for role based access control.
"""
from rest_framework.permissions import BasePermission

STAFF_ROLES = {"doctor", "nurse", "lab_technician", "pharmacist", "admin"}


def _has_role(request, *roles: str) -> bool:
    user = getattr(request, "user", None)
    return bool(user and user.is_authenticated and getattr(user, "role", None) in roles)


class IsAdminRole(BasePermission):
    """Allow access only to users with the administrator role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, "admin")


class IsPatientRole(BasePermission):
    """Allow access only to users with the patient role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, "patient")


class IsDoctorRole(BasePermission):
    """Doctors (and administrators)."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, "doctor", "admin")


class IsNurseRole(BasePermission):
    """Nurses (and administrators)."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, "nurse", "admin")


class IsLabTechnicianRole(BasePermission):
    """Lab technicians (and administrators)."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, "lab_technician", "admin")


class IsPharmacistRole(BasePermission):
    """Pharmacists (and administrators)."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, "pharmacist", "admin")


class IsStaffRole(BasePermission):
    """Any hospital staff role, i.e. everyone but patients."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, *STAFF_ROLES)
