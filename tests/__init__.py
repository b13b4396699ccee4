"""
Test suite for the Vaccine Reservation Scheduler.

Contains unit tests for the ledgers and the reservation coordinator, plus
tests driving the command shell and the HTTP API.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
