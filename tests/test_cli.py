import io

import pytest
from sqlalchemy.exc import OperationalError

from vaccine_scheduler.cli import SchedulerShell
from vaccine_scheduler.services import AvailabilityLedger

PASSWORD = "Str0ng!Pass"


@pytest.fixture
def shell(session_factory):
    """Run lines through a shell and collect what it printed."""
    def _run(*lines):
        out = io.StringIO()
        instance = SchedulerShell(session_factory, stdin=io.StringIO(), stdout=out)
        for line in lines:
            if instance.onecmd(line):
                break
        return out.getvalue().splitlines()
    return _run


class TestCommandShell:

    def test_unknown_command(self, shell):
        output = shell("make_coffee now")

        assert output == ["Invalid operation name!"]

    @pytest.mark.parametrize("line", ["help", "?", "help reserve"])
    def test_help_is_not_an_operation(self, shell, line):
        assert shell(line) == ["Invalid operation name!"]

    def test_wrong_number_of_arguments(self, shell):
        output = shell("create_patient onlyname")

        assert output == ["Please try again!"]

    def test_create_and_login(self, shell):
        output = shell(
            f"create_patient pat1 {PASSWORD}",
            f"login_patient pat1 {PASSWORD}",
            f"login_caregiver cg1 {PASSWORD}",
        )

        assert output == [
            " *** Patient account created successfully *** ",
            "Patient logged in as: pat1",
            "Already logged-in!",
        ]

    def test_create_with_weak_password(self, shell):
        output = shell("create_caregiver cg1 weak")

        assert output[0].startswith("Password is too weak")

    def test_bad_login_keeps_shell_alive(self, shell):
        output = shell(
            f"login_patient ghost {PASSWORD}",
            "show_appointments",
        )

        assert output == ["Invalid username or password!", "Please login first!"]

    def test_logout_without_session(self, shell):
        assert shell("logout") == ["Error! User already logged out."]

    def test_cancel_is_unavailable(self, shell):
        assert shell("cancel 1") == ["Sorry, operation currently not available."]

    def test_quit_stops_processing(self, shell):
        output = shell("quit", "logout")

        assert output == ["Bye!"]

    def test_add_doses_rejects_bad_amounts(self, shell):
        output = shell(
            f"create_caregiver cg1 {PASSWORD}",
            f"login_caregiver cg1 {PASSWORD}",
            "add_doses flu -3",
            "add_doses flu many",
            "add_doses flu 99999999999999999999",
            "upload_availability 2024-13-01",
        )

        assert output[2] == "Number of doses must be a non-negative integer!"
        assert output[3] == "Number of doses must be a non-negative integer!"
        assert output[4] == "Number of doses must be a non-negative integer!"
        assert output[5] == "2024-13-01 is not a valid calendar date!"

    def test_no_slot_keeps_doses(self, shell):
        """Test reserving without a published slot leaves the stock alone."""
        output = shell(
            f"create_caregiver cg1 {PASSWORD}",
            f"login_caregiver cg1 {PASSWORD}",
            "add_doses flu 5",
            "logout",
            f"create_patient pat1 {PASSWORD}",
            f"login_patient pat1 {PASSWORD}",
            "reserve 2024-05-01 flu",
            "search_caregiver_schedule 2024-05-01",
        )

        assert output[6] == "No caregiver is available on 2024-05-01!"
        assert output[-1] == "vaccine name: flu available doses: 5"

    def test_storage_fault_keeps_session(self, shell, monkeypatch):
        """Test a database failure is reported in one line and the shell carries on."""
        def failing_claim(self, slot_date):
            raise OperationalError("DELETE FROM availabilities", {}, Exception("disk I/O error"))

        monkeypatch.setattr(AvailabilityLedger, "claim_one_for_date", failing_claim)

        output = shell(
            f"create_caregiver cg1 {PASSWORD}",
            f"login_caregiver cg1 {PASSWORD}",
            "upload_availability 2024-05-01",
            "add_doses flu 2",
            "logout",
            f"create_patient pat1 {PASSWORD}",
            f"login_patient pat1 {PASSWORD}",
            "reserve 2024-05-01 flu",
            "search_caregiver_schedule 2024-05-01",
        )

        assert output[7] == "Storage unavailable, please try again later."
        assert output[8:] == [
            "available caregivers:",
            "cg1",
            "available vaccines & doses:",
            "vaccine name: flu available doses: 2",
        ]

    def test_full_reservation_flow(self, shell):
        """Test upload, dose top-up, reservation and the listings that follow."""
        output = shell(
            f"create_caregiver cg1 {PASSWORD}",
            f"login_caregiver cg1 {PASSWORD}",
            "upload_availability 2024-05-01",
            "add_doses flu 1",
            "logout",
            f"create_patient pat1 {PASSWORD}",
            f"login_patient pat1 {PASSWORD}",
            "add_doses flu 3",
            "show_appointments",
            "reserve 2024-05-01 flu",
            "search_caregiver_schedule 2024-05-01",
            "show_appointments",
            "logout",
            f"login_caregiver cg1 {PASSWORD}",
            "show_appointments",
        )

        assert output[2] == "Availability uploaded!"
        assert output[3] == "Doses updated!"
        assert output[7] == "Please login as a caregiver first!"
        assert output[8] == "You have no appointments."
        assert output[9] == "You have successfully made a reservation with cg1!"
        assert output[10] == "Your appointment id is 1."
        assert output[11:15] == [
            "available caregivers:",
            "(none)",
            "available vaccines & doses:",
            "vaccine name: flu available doses: 0",
        ]
        assert output[15] == (
            "Appointment ID: 1 Vaccine Scheduled: flu Appointment Time: 2024-05-01 "
            "Caregiver Name: cg1"
        )
        assert output[-1] == (
            "Appointment ID: 1 Vaccine Scheduled: flu Appointment Time: 2024-05-01 "
            "Patient Name: pat1"
        )

    def test_cmdloop_reads_until_quit(self, session_factory):
        out = io.StringIO()
        commands = io.StringIO("cancel 3\nquit\nlogout\n")

        SchedulerShell(session_factory, stdin=commands, stdout=out).cmdloop()

        lines = out.getvalue().splitlines()
        assert "Sorry, operation currently not available." in lines[-2]
        assert lines[-1] == "> Bye!"
