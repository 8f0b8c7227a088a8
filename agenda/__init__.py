"""Appointment scheduling service: services, bookings and weekly availability."""

__version__ = "0.1.0"
