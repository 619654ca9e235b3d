from __future__ import annotations

import argparse
import getpass
import logging
import sys

from incidesk import views
from incidesk.ai.analysis_client import build_analysis_client
from incidesk.bootstrap import load_dotenv
from incidesk.config import Settings
from incidesk.domain.errors import IncidentError, ValidationError
from incidesk.domain.models import AppConfig, IncidentDraft, IncidentStatus, IncidentType
from incidesk.lifecycle.controller import IncidentController
from incidesk.notify.notifier import LoggingNotifier
from incidesk.observability.logging import setup_logging
from incidesk.session import AdminSession
from incidesk.storage.backends import KeyValueStorage, MemoryStorage, open_storage
from incidesk.storage.repository import STORAGE_ERRORS, ConfigStore, IncidentStore

logger = logging.getLogger("incidesk")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID = 2

_TYPE_CHOICES = {"it": IncidentType.IT, "building": IncidentType.BUILDING}


def _open_storage_or_memory(url: str) -> KeyValueStorage:
    try:
        return open_storage(url)
    except STORAGE_ERRORS as exc:
        logger.warning("storage unavailable, keeping state in memory for this run | url=%s error=%s", url, exc)
        return MemoryStorage()


def build_controller(settings: Settings, storage: KeyValueStorage | None = None) -> IncidentController:
    storage = storage or _open_storage_or_memory(settings.storage_url)
    return IncidentController(
        incidents=IncidentStore(storage),
        config=ConfigStore(storage),
        analyzer=build_analysis_client(settings),
        notifier=LoggingNotifier(),
    )


def _cmd_home(args: argparse.Namespace, controller: IncidentController, session: AdminSession) -> int:
    print(views.render_home(session))
    return EXIT_OK


def _cmd_report(args: argparse.Namespace, controller: IncidentController, session: AdminSession) -> int:
    draft = IncidentDraft(
        type=_TYPE_CHOICES[args.type],
        location=args.location,
        description=args.description,
        suggestions=args.suggestions,
        contact=args.contact,
    )
    print("Analyzing incident...", file=sys.stderr)
    incident = controller.create(draft)
    print(views.render_detail(incident))
    return EXIT_OK


def _cmd_list(args: argparse.Namespace, controller: IncidentController, session: AdminSession) -> int:
    print(views.render_list(controller.list_incidents(session), session))
    return EXIT_OK


def _cmd_show(args: argparse.Namespace, controller: IncidentController, session: AdminSession) -> int:
    print(views.render_detail(controller.get(args.incident_id)))
    return EXIT_OK


def _cmd_stats(args: argparse.Namespace, controller: IncidentController, session: AdminSession) -> int:
    print(views.render_stats(controller.stats()))
    return EXIT_OK


def _cmd_set_status(args: argparse.Namespace, controller: IncidentController, session: AdminSession) -> int:
    try:
        status = IncidentStatus.parse(args.status)
    except ValueError as exc:
        raise ValidationError(str(exc), fields=("status",)) from exc
    incident = controller.update_status(session, args.incident_id, status)
    print(views.render_detail(incident))
    return EXIT_OK


def _cmd_config_show(args: argparse.Namespace, controller: IncidentController, session: AdminSession) -> int:
    print(views.render_config(controller.config(session)))
    return EXIT_OK


def _cmd_config_set(args: argparse.Namespace, controller: IncidentController, session: AdminSession) -> int:
    # Same as the admin form: prefilled with current values, saved as a whole.
    current = controller.config(session)
    updated = AppConfig(
        spreadsheet_url=args.spreadsheet_url if args.spreadsheet_url is not None else current.spreadsheet_url,
        it_email=args.it_email if args.it_email is not None else current.it_email,
        building_email=args.building_email if args.building_email is not None else current.building_email,
    )
    controller.save_config(session, updated)
    print(views.render_config(updated))
    print("Settings saved.")
    return EXIT_OK


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="incidesk", description="School IT and building incident desk")
    parser.add_argument("--admin", action="store_true", help="log in as administrator before running the command")
    parser.add_argument("--passphrase", help="administrator passphrase (prompted when omitted)")
    parser.add_argument("--env-file", default=".env", help="dotenv file to load (default: .env)")
    parser.set_defaults(handler=_cmd_home)

    sub = parser.add_subparsers(dest="command")

    report = sub.add_parser("report", help="report a new incident")
    report.add_argument("type", choices=sorted(_TYPE_CHOICES))
    report.add_argument("--location", required=True, help="room or place where the problem is")
    report.add_argument("--description", required=True, help="what is wrong")
    report.add_argument("--suggestions", default="", help="optional fix suggested by the reporter")
    report.add_argument("--contact", default="", help="optional contact to notify about progress")
    report.set_defaults(handler=_cmd_report)

    sub.add_parser("list", help="list incidents").set_defaults(handler=_cmd_list)

    show = sub.add_parser("show", help="show one incident with its AI analysis")
    show.add_argument("incident_id")
    show.set_defaults(handler=_cmd_show)

    sub.add_parser("stats", help="show incident statistics").set_defaults(handler=_cmd_stats)

    set_status = sub.add_parser("set-status", help="change an incident's status (admin)")
    set_status.add_argument("incident_id")
    set_status.add_argument(
        "status",
        help="one of: " + ", ".join(s.value for s in IncidentStatus),
    )
    set_status.set_defaults(handler=_cmd_set_status)

    config = sub.add_parser("config", help="view or change notification settings (admin)")
    config_sub = config.add_subparsers(dest="config_command")
    config.set_defaults(handler=_cmd_config_show)
    config_sub.add_parser("show").set_defaults(handler=_cmd_config_show)
    config_set = config_sub.add_parser("set")
    config_set.add_argument("--spreadsheet-url")
    config_set.add_argument("--it-email")
    config_set.add_argument("--building-email")
    config_set.set_defaults(handler=_cmd_config_set)

    return parser.parse_args(argv)


def main(argv: list[str] | None = None, storage: KeyValueStorage | None = None) -> int:
    args = parse_args(argv)
    load_dotenv(args.env_file)
    settings = Settings.from_env()

    setup_logging(level=settings.log_level, json_logs=settings.json_logs)

    session = AdminSession(settings.admin_passphrase)
    if args.admin:
        entered = args.passphrase if args.passphrase is not None else getpass.getpass("Admin passphrase: ")
        if not session.login(entered):
            print("Incorrect passphrase.", file=sys.stderr)
            return EXIT_ERROR

    controller = build_controller(settings, storage)

    try:
        return args.handler(args, controller, session)
    except ValidationError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_INVALID
    except IncidentError as exc:
        logger.info("command rejected | command=%s error=%s", args.command, exc)
        print(str(exc), file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
