"""Clinic application for the hospital workflow backend.

This package contains the models, services, serializers, views and route
registrations for the appointment, consultation, lab test, prescription
and payment workflow.
"""
