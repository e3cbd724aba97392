"""
Read-only catalog lookups used by the booking and payment screens.

Results are plain dicts cached in the default Django cache for
``HMS_CATALOG_CACHE_SECONDS``.  Catalog writes happen in the admin site;
call :func:`invalidate` (or ``refresh_catalog``) after bulk edits.
"""
from __future__ import annotations

from typing import Callable, List, Optional

from django.conf import settings
from django.core.cache import cache

from clinic.models import (
    Department,
    Doctor,
    Hospital,
    HospitalDepartment,
    Insurance,
    LabTestTemplate,
    Medication,
    Pharmacy,
)

CACHE_PREFIX = 'catalog'
CACHE_KEYS_REGISTRY = f'{CACHE_PREFIX}:keys'


def _cached(key: str, build: Callable[[], list]) -> list:
    full_key = f'{CACHE_PREFIX}:{key}'
    data = cache.get(full_key)
    if data is None:
        data = build()
        cache.set(full_key, data, settings.HMS_CATALOG_CACHE_SECONDS)
        keys = set(cache.get(CACHE_KEYS_REGISTRY) or ())
        keys.add(full_key)
        cache.set(CACHE_KEYS_REGISTRY, keys, None)
    return data


def invalidate() -> int:
    keys = cache.get(CACHE_KEYS_REGISTRY) or set()
    cache.delete_many(list(keys) + [CACHE_KEYS_REGISTRY])
    return len(keys)


def _money(value) -> float:
    return float(value)


def hospital_dict(h: Hospital) -> dict:
    return {
        'id': h.id,
        'name': h.name,
        'location': h.location,
        'phone': h.phone,
        'email': h.email,
        'description': h.description,
        'consultation_fee': _money(h.consultation_fee),
    }


def department_dict(d: Department) -> dict:
    return {'id': d.id, 'name': d.name, 'description': d.description}


def doctor_dict(doc: Doctor) -> dict:
    return {
        'id': doc.id,
        'user_id': doc.user_id,
        'name': doc.user.display_name,
        'email': doc.user.email,
        'specialization': doc.specialization,
        'license_number': doc.license_number,
        'consultation_fee': _money(doc.consultation_fee or doc.hospital.consultation_fee),
        'hospital': {'id': doc.hospital_id, 'name': doc.hospital.name},
        'department': {'id': doc.department_id, 'name': doc.department.name},
    }


def list_hospitals() -> List[dict]:
    return _cached('hospitals', lambda: [hospital_dict(h) for h in Hospital.objects.order_by('name')])


def list_departments(hospital_id: Optional[int] = None) -> List[dict]:
    if hospital_id is None:
        return _cached('departments', lambda: [department_dict(d) for d in Department.objects.order_by('name')])

    def build():
        links = HospitalDepartment.objects.filter(hospital_id=hospital_id).select_related('department')
        return [department_dict(link.department) for link in links.order_by('department__name')]
    return _cached(f'departments:h{hospital_id}', build)


def list_doctors(hospital_id: Optional[int] = None, department_id: Optional[int] = None) -> List[dict]:
    def build():
        qs = Doctor.objects.select_related('user', 'hospital', 'department').filter(user__is_active=True)
        if hospital_id is not None:
            qs = qs.filter(hospital_id=hospital_id)
        if department_id is not None:
            qs = qs.filter(department_id=department_id)
        return [doctor_dict(d) for d in qs.order_by('user__full_name', 'id')]
    return _cached(f'doctors:h{hospital_id}:d{department_id}', build)


def list_insurances() -> List[dict]:
    return _cached('insurances', lambda: [
        {'id': i.id, 'name': i.name, 'coverage_percentage': float(i.coverage_percentage), 'description': i.description}
        for i in Insurance.objects.order_by('name')
    ])


def list_lab_test_templates() -> List[dict]:
    return _cached('lab_test_templates', lambda: [
        {'id': t.id, 'name': t.name, 'description': t.description, 'category': t.category, 'price': _money(t.price)}
        for t in LabTestTemplate.objects.order_by('name')
    ])


def list_medications() -> List[dict]:
    return _cached('medications', lambda: [
        {
            'id': m.id,
            'name': m.name,
            'description': m.description,
            'category': m.category,
            'unit_price': _money(m.unit_price),
            'stock_quantity': m.stock_quantity,
            'requires_prescription': m.requires_prescription,
        }
        for m in Medication.objects.order_by('name')
    ])


def list_pharmacies() -> List[dict]:
    return _cached('pharmacies', lambda: [
        {
            'id': p.id,
            'name': p.name,
            'location': p.location,
            'phone': p.phone,
            'latitude': p.latitude,
            'longitude': p.longitude,
        }
        for p in Pharmacy.objects.order_by('name')
    ])
