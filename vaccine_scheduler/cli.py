"""Line-oriented command shell for the vaccine scheduler.

Run with ``vaccine-scheduler`` or ``python -m vaccine_scheduler``.
"""

import argparse
import cmd
import logging
import sys
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .core.config import settings
from .core.database import SessionLocal, build_engine, build_session_factory, init_db
from .core.errors import AuthFailure, SchedulerError
from .core.security import UserRole
from .services import (
    AccountService, ReservationCoordinator, SchedulerService, UserSession
)

logger = logging.getLogger(__name__)

BANNER = "\n".join([
    "",
    "Welcome to the COVID-19 Vaccine Reservation Scheduling Application!",
    "*** Please enter one of the following commands ***",
    "> create_patient <username> <password>",
    "> create_caregiver <username> <password>",
    "> login_patient <username> <password>",
    "> login_caregiver <username> <password>",
    "> search_caregiver_schedule <date>",
    "> reserve <date> <vaccine>",
    "> upload_availability <date>",
    "> cancel <appointment_id>",
    "> add_doses <vaccine> <number>",
    "> show_appointments",
    "> logout",
    "> quit",
    "",
])

RETRY_MESSAGE = "Please try again!"


class WrongArity(Exception):
    pass


def _tokens(arg: str, expected: int) -> List[str]:
    tokens = arg.split()
    if len(tokens) != expected:
        raise WrongArity()
    return tokens


class SchedulerShell(cmd.Cmd):
    intro = BANNER
    prompt = "> "

    def __init__(self, session_factory: sessionmaker, stdin=None, stdout=None):
        super().__init__(stdin=stdin, stdout=stdout)
        if stdin is not None:
            self.use_rawinput = False
        self.accounts = AccountService(session_factory)
        self.scheduler = SchedulerService(session_factory)
        self.coordinator = ReservationCoordinator(session_factory)
        self.session: Optional[UserSession] = None

    def say(self, message: str) -> None:
        self.stdout.write(f"{message}\n")

    # Dispatch

    def onecmd(self, line):
        try:
            return super().onecmd(line)
        except WrongArity:
            self.say(RETRY_MESSAGE)
        except SchedulerError as exc:
            self.say(exc.message)
        return False

    def emptyline(self):
        self.say(RETRY_MESSAGE)

    def default(self, line):
        if line == "EOF":
            return True
        self.say("Invalid operation name!")

    def do_help(self, arg):
        # Not a scheduler operation; "?" lands here too
        self.default(f"help {arg}".strip())

    # Accounts and sessions

    def _require_no_session(self) -> None:
        if self.session is not None:
            raise AuthFailure("Already logged-in!")

    def _create(self, role: UserRole, arg: str) -> None:
        self._require_no_session()
        username, password = _tokens(arg, 2)
        self.accounts.register(role, username, password)
        self.say(f" *** {role.value.capitalize()} account created successfully *** ")

    def _login(self, role: UserRole, arg: str) -> None:
        self._require_no_session()
        username, password = _tokens(arg, 2)
        self.session = self.accounts.authenticate(role, username, password)
        self.say(f"{role.value.capitalize()} logged in as: {username}")

    def do_create_patient(self, arg):
        """create_patient <username> <password>"""
        self._create(UserRole.PATIENT, arg)

    def do_create_caregiver(self, arg):
        """create_caregiver <username> <password>"""
        self._create(UserRole.CAREGIVER, arg)

    def do_login_patient(self, arg):
        """login_patient <username> <password>"""
        self._login(UserRole.PATIENT, arg)

    def do_login_caregiver(self, arg):
        """login_caregiver <username> <password>"""
        self._login(UserRole.CAREGIVER, arg)

    def do_logout(self, arg):
        """logout"""
        if self.session is None:
            raise AuthFailure("Error! User already logged out.")
        _tokens(arg, 0)
        self.session = None
        self.say("You have logged out successfully.")

    # Scheduling

    def do_search_caregiver_schedule(self, arg):
        """search_caregiver_schedule <date>"""
        if self.session is None:
            raise AuthFailure("Please login first!")
        (slot_date,) = _tokens(arg, 1)
        view = self.scheduler.search_schedule(self.session, slot_date)

        self.say("available caregivers:")
        if not view.caregivers:
            self.say("(none)")
        for username in view.caregivers:
            self.say(username)
        self.say("available vaccines & doses:")
        if not view.vaccines:
            self.say("(none)")
        for vaccine in view.vaccines:
            self.say(f"vaccine name: {vaccine.name} available doses: {vaccine.doses}")

    def do_reserve(self, arg):
        """reserve <date> <vaccine>"""
        if self.session is None or not self.session.is_patient:
            raise AuthFailure("Please login as a patient first to reserve your appointment!")
        slot_date, vaccine_name = _tokens(arg, 2)
        reservation = self.coordinator.reserve(self.session.username, slot_date, vaccine_name)
        self.say(f"You have successfully made a reservation with {reservation.caregiver_username}!")
        self.say(f"Your appointment id is {reservation.appointment_id}.")

    def do_upload_availability(self, arg):
        """upload_availability <date>"""
        if self.session is None or not self.session.is_caregiver:
            raise AuthFailure("Please login as a caregiver first!")
        (slot_date,) = _tokens(arg, 1)
        self.scheduler.upload_availability(self.session, slot_date)
        self.say("Availability uploaded!")

    def do_add_doses(self, arg):
        """add_doses <vaccine> <number>"""
        if self.session is None or not self.session.is_caregiver:
            raise AuthFailure("Please login as a caregiver first!")
        vaccine_name, amount = _tokens(arg, 2)
        self.scheduler.add_doses(self.session, vaccine_name, amount)
        self.say("Doses updated!")

    def do_show_appointments(self, arg):
        """show_appointments"""
        if self.session is None:
            raise AuthFailure("Please login first!")
        _tokens(arg, 0)
        appointments = self.scheduler.show_appointments(self.session)
        if not appointments:
            self.say("You have no appointments.")
            return

        for appointment in appointments:
            if self.session.is_patient:
                counterpart = f"Caregiver Name: {appointment.caregiver_username}"
            else:
                counterpart = f"Patient Name: {appointment.patient_username}"
            self.say(
                f"Appointment ID: {appointment.id} "
                f"Vaccine Scheduled: {appointment.vaccine_name} "
                f"Appointment Time: {appointment.date.isoformat()} "
                f"{counterpart}"
            )

    def do_cancel(self, arg):
        """cancel <appointment_id>"""
        self.scheduler.cancel(self.session, arg.strip())

    def do_quit(self, arg):
        """quit"""
        self.say("Bye!")
        return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="COVID-19 vaccine reservation scheduler")
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy database URL (defaults to DATABASE_URL from the environment)",
    )
    parser.add_argument("--log-level", default=settings.LOG_LEVEL)
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), stream=sys.stderr)

    if args.database_url:
        engine = build_engine(args.database_url)
        session_factory = build_session_factory(engine)
    else:
        engine = None
        session_factory = SessionLocal

    try:
        init_db(engine)
    except SQLAlchemyError as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        return 1

    SchedulerShell(session_factory).cmdloop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
