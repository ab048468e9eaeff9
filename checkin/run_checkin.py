"""
run_checkin.py - Main Application Entry Point
==============================================
Command line front end for the check-in workflow. Every command prints the
JSON envelope returned by the service.

What it does:
-------------
1. Loads configuration from environment variables (.env file)
2. Builds the check-in service (reader, matcher, plan resolver)
3. Runs the requested command
4. Exits 0 when the envelope reports success, 1 otherwise

Usage:
------
    python -m checkin.run_checkin scan
    python -m checkin.run_checkin find JOHN SMITH --dob 03-22-1985
    python -m checkin.run_checkin plans 5d1c6d0b-...
    python -m checkin.run_checkin orders --member-id 5d1c6d0b-...
    python -m checkin.run_checkin checkin --plans
    python -m checkin.run_checkin watch

Common Options:
---------------
    --env-file  : Path to the .env file (default: project root .env)
    --csv       : Override SCANID_CSV_PATH
    --debug     : Enable debug logging (request bodies and responses)
"""

import argparse
import json
import logging
import sys
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict

from .config import load_settings
from .service import CheckinService
from .watcher import ScanWatcher


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

LOG_LEVEL = logging.INFO

# How often the watch loop wakes up to check for Ctrl+C
WATCH_TICK_SEC = 1.0


# =============================================================================
# LOGGING SETUP
# =============================================================================

logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%H:%M:%S'
)

logger = logging.getLogger(__name__)


# =============================================================================
# OUTPUT
# =============================================================================

def print_envelope(envelope: Dict[str, Any]):
    print(json.dumps(envelope, indent=2, default=str))


# =============================================================================
# COMMAND LINE ARGUMENT PARSING
# =============================================================================

def parse_arguments(argv=None):
    """
    Parse command-line arguments.

    Returns:
        Namespace with the chosen command and its options
    """
    parser = argparse.ArgumentParser(
        description='Scan-ID check-in: read the latest ID scan and look the member up on Wix',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m checkin.run_checkin scan
  python -m checkin.run_checkin find JOHN SMITH --dob 03-22-1985
  python -m checkin.run_checkin checkin --plans
  python -m checkin.run_checkin watch
        """
    )

    parser.add_argument('--env-file', help='Path to the .env file')
    parser.add_argument('--csv', help='Path to the Scan-ID export CSV (overrides SCANID_CSV_PATH)')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')

    commands = parser.add_subparsers(dest='command', required=True)

    commands.add_parser('scan', help='Show the latest scan in the export')

    find = commands.add_parser('find', help='Look a member up by name and date of birth')
    find.add_argument('first_name', nargs='?', default='', help='First name as printed on the ID')
    find.add_argument('last_name', nargs='?', default='', help='Last name as printed on the ID')
    find.add_argument('--dob', default='', help='Date of birth (MM-DD-YYYY)')

    plans = commands.add_parser('plans', help="List a member's pricing-plan subscriptions")
    plans.add_argument('member_id', help='Wix member id')

    orders = commands.add_parser('orders', help='List pricing-plan orders')
    orders.add_argument('--member-id', default=None, help='Only orders of this member')

    checkin_cmd = commands.add_parser('checkin', help='Read the latest scan and look its owner up')
    checkin_cmd.add_argument('--plans', action='store_true', help="Also fetch the first match's plans and orders")

    watch = commands.add_parser('watch', help='Run check-in on every change of the export file')
    watch.add_argument('--plans', action='store_true', help="Also fetch the first match's plans and orders")

    return parser.parse_args(argv)


# =============================================================================
# WATCH MODE
# =============================================================================

def run_watch(service: CheckinService, polling: bool, include_plans: bool) -> int:
    """Watch the export until Ctrl+C, printing every event."""

    def on_event(event_type: str, data: Dict[str, Any]):
        logger.info(f"Watch event: {event_type}")
        print_envelope({"event": event_type, "data": data})

    watcher = ScanWatcher(
        service.scan_path,
        lambda: service.process_latest_scan(include_plans=include_plans),
        on_event,
        polling=polling,
    )

    started = watcher.start()
    if not started["success"]:
        return 1

    stop = threading.Event()
    try:
        while not stop.wait(WATCH_TICK_SEC):
            pass
    except KeyboardInterrupt:
        logger.warning("Interrupted by user. Stopping watcher...")
    finally:
        watcher.stop()
    return 0


# =============================================================================
# MAIN EXECUTION FUNCTION
# =============================================================================

def run_checkin(argv=None) -> int:
    """
    Main execution logic.

    Returns:
        Process exit code (0 = success)
    """
    args = parse_arguments(argv)

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    service = None

    try:
        settings = load_settings(args.env_file)
        if args.csv:
            settings = replace(settings, scan_csv_path=Path(args.csv).expanduser().resolve())
        logger.info(f"Scan-ID CSV: {settings.scan_csv_path}")

        service = CheckinService.from_settings(settings)

        if args.command == 'watch':
            return run_watch(service, settings.watch_polling, args.plans)

        if args.command == 'scan':
            envelope = service.get_latest_scan()
        elif args.command == 'find':
            envelope = service.find_member(args.first_name, args.last_name, args.dob)
        elif args.command == 'plans':
            envelope = service.get_plans(args.member_id)
        elif args.command == 'orders':
            envelope = service.list_plan_orders(args.member_id)
        else:
            envelope = service.process_latest_scan(include_plans=args.plans)

        print_envelope(envelope)
        return 0 if envelope.get("success") else 1

    except RuntimeError as e:
        # Configuration errors
        logger.error(f"Fatal error: {e}")
        return 1

    finally:
        if service:
            service.close()


# =============================================================================
# SCRIPT ENTRY POINT
# =============================================================================

def main():
    sys.exit(run_checkin())


if __name__ == '__main__':
    main()
