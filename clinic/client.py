"""
Thin REST client for the hospital workflow API.

Used by scripts and integration checks against a running backend.  Error
responses surface as :class:`ApiError` carrying the server's ``error``
message; network failures surface as one "cannot connect" message.
Nothing is retried.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import requests

from clinic import timeslots

logger = logging.getLogger(__name__)

BASE_URL = "http://127.0.0.1:8000"
CONNECTION_ERROR = "Cannot connect to server. Please make sure the backend is running."


class ApiError(Exception):
    def __init__(self, message: str, status: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


class HospitalApiClient:
    def __init__(self, base_url: str = BASE_URL, *, timeout: float = 10, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.access: Optional[str] = None
        self.refresh_token: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None

    # -----------------------------------------------------------------
    # Transport
    # -----------------------------------------------------------------
    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.access:
            headers["Authorization"] = f"Bearer {self.access}"
        return headers

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(CONNECTION_ERROR) from e

        if r.status_code >= 400:
            try:
                data = r.json()
            except ValueError:
                data = {}
            message = None
            if isinstance(data, dict):
                message = data.get("error") or data.get("detail")
            raise ApiError(message or f"Request failed with status {r.status_code}",
                           status=r.status_code, code=data.get("code") if isinstance(data, dict) else None)

        if r.status_code == 204 or not r.content:
            return None
        return r.json()

    def get(self, path: str, params: Optional[Mapping] = None) -> Any:
        return self._request("GET", path, params=params)

    def post(self, path: str, payload: Optional[Mapping] = None) -> Any:
        return self._request("POST", path, json=payload or {})

    def put(self, path: str, payload: Optional[Mapping] = None) -> Any:
        return self._request("PUT", path, json=payload or {})

    # -----------------------------------------------------------------
    # Auth
    # -----------------------------------------------------------------
    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self.post("/api/auth/login", {"email": email, "password": password})
        self.access = data["access"]
        self.refresh_token = data["refresh"]
        self.user = data.get("user")
        return self.user or {}

    def refresh(self) -> None:
        data = self.post("/api/auth/refresh", {"refresh": self.refresh_token})
        self.access = data["access"]
        self.refresh_token = data.get("refresh", self.refresh_token)

    def logout(self) -> None:
        try:
            self.post("/api/auth/logout", {"refresh": self.refresh_token})
        finally:
            self.access = self.refresh_token = None
            self.user = None

    # -----------------------------------------------------------------
    # Appointments
    # -----------------------------------------------------------------
    def available_slots(self, doctor_id: int, on_date: Union[str, date], now: Optional[datetime] = None) -> List[str]:
        """Bookable ``HH:MM`` slots; an unknown doctor yields ``[]``."""
        on_date = timeslots.as_date(on_date)
        try:
            data = self.get(f"/api/appointments/available/{doctor_id}/{on_date.isoformat()}")
        except ApiError as e:
            if e.status == 404:
                return []
            raise
        return timeslots.filter_past_slots(data or [], on_date, now or datetime.now())

    def book_appointment(self, *, doctor_id: int, appointment_date: Union[str, date], appointment_time: str,
                         hospital_id: Optional[int] = None, department_id: Optional[int] = None,
                         reason: str = "") -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "doctor_id": doctor_id,
            "appointment_date": timeslots.as_date(appointment_date).isoformat(),
            "appointment_time": timeslots.normalize_slot(appointment_time),
            "reason": reason,
        }
        if hospital_id is not None:
            payload["hospital_id"] = hospital_id
        if department_id is not None:
            payload["department_id"] = department_id
        return self.post("/api/appointments", payload)

    def appointments(self, **params) -> List[Dict[str, Any]]:
        return self.get("/api/appointments", params=params or None)

    def approve_appointment(self, appointment_id: int, *, weight: float, temperature: float) -> Dict[str, Any]:
        return self.put(f"/api/appointments/{appointment_id}",
                        {"status": "approved", "weight": weight, "temperature": temperature})

    def reject_appointment(self, appointment_id: int, reason: str) -> Dict[str, Any]:
        return self.put(f"/api/appointments/{appointment_id}", {"status": "rejected", "rejection_reason": reason})

    def start_consultation(self, appointment_id: int) -> Dict[str, Any]:
        return self.post(f"/api/appointments/{appointment_id}/start-consultation")

    # -----------------------------------------------------------------
    # Consultations, lab tests, prescriptions
    # -----------------------------------------------------------------
    def save_consultation(self, *, appointment_id: int, diagnosis: str, notes: str = "",
                          requires_lab_test: bool = False, requires_prescription: bool = False,
                          lab_test_template_ids: Iterable[int] = ()) -> Dict[str, Any]:
        return self.post("/api/consultations", {
            "appointment_id": appointment_id,
            "diagnosis": diagnosis,
            "notes": notes,
            "requires_lab_test": requires_lab_test,
            "requires_prescription": requires_prescription,
            "lab_test_template_ids": list(lab_test_template_ids),
        })

    def create_prescriptions(self, consultation_id: int, items: List[Mapping[str, Any]],
                             signature_data: Optional[str] = None, notes: str = "") -> List[Dict[str, Any]]:
        return self.post("/api/prescriptions", {
            "consultation_id": consultation_id,
            "items": [dict(i) for i in items],
            "signature_data": signature_data,
            "notes": notes,
        })

    def update_prescription(self, prescription_id: int, **fields) -> Dict[str, Any]:
        return self.put(f"/api/prescriptions/{prescription_id}", fields)

    def update_lab_request(self, request_id: int, status: str) -> Dict[str, Any]:
        return self.put(f"/api/lab-tests/requests/{request_id}", {"status": status})

    def submit_lab_result(self, request_id: int, *, result_status: str, result_data: str,
                          notes: str = "") -> Dict[str, Any]:
        return self.post("/api/lab-tests/results", {
            "lab_test_request_id": request_id,
            "result_status": result_status,
            "result_data": result_data,
            "notes": notes,
        })

    # -----------------------------------------------------------------
    # Payments & notifications
    # -----------------------------------------------------------------
    def pay(self, payment_type: str, reference_id: int, *, payment_method: str = "mobile_money",
            phone_number: str = "") -> Dict[str, Any]:
        return self.post("/api/payments", {
            "payment_type": payment_type,
            "reference_id": reference_id,
            "payment_method": payment_method,
            "phone_number": phone_number,
        })

    def has_paid(self, payment_type: str, reference_id: int) -> bool:
        data = self.get(f"/api/payments/reference/{payment_type}/{reference_id}")
        return bool(data.get("has_paid"))

    def notifications(self, unread_only: bool = False) -> List[Dict[str, Any]]:
        return self.get("/api/notifications", params={"unread": "1"} if unread_only else None)

    def unread_count(self) -> int:
        return int(self.get("/api/notifications/unread-count")["count"])

    def mark_read(self, notification_id: int) -> Dict[str, Any]:
        return self.post(f"/api/notifications/{notification_id}/read")
