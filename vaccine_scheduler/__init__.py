"""
Vaccine Reservation Scheduler

Matches patients to caregiver availability and vaccine stock, with a
command shell and an HTTP API over one shared database.
"""

__version__ = "1.0.0"
