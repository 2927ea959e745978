"""Clinic application for the telehealth backend.

This package contains the models, serializers, services, views and
route registrations behind the patient/doctor messaging portals.
"""
