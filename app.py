#!/usr/bin/env python3
#USE VENV: source venv/bin/activate
"""
Run script for the Equipment Inventory engine

    python app.py build [--enable-debug-data]
    python app.py availability <item_id> [--storage]
    python app.py history <item_id> [--limit N]
    python app.py location <location_id>
"""

import argparse
import json
import sys

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from app import create_app
from app.build import build_database
from app.buisness.inventory.availability_calculator import AvailabilityCalculator
from app.buisness.inventory.errors import InventoryDomainError
from app.logger import get_logger
from app.services.inventory import AllocationHistoryService, LocationInventoryService

logger = get_logger("equipment_inventory.run")


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(description='Equipment Inventory allocation engine')
    subparsers = parser.add_subparsers(dest='command', required=True)

    build = subparsers.add_parser('build', help='Create tables and insert critical data')
    build.add_argument('--enable-debug-data', action='store_true',
                       help='Also insert debug data (items, locations, events, allocations)')

    availability = subparsers.add_parser('availability', help='Show availability of an item')
    availability.add_argument('item_id', type=int)
    availability.add_argument('--storage', action='store_true',
                              help='Show availability in default storage locations instead')

    history = subparsers.add_parser('history', help='Show the latest audit entries of an item')
    history.add_argument('item_id', type=int)
    history.add_argument('--limit', type=int, default=None)

    location = subparsers.add_parser('location', help='Show what is allocated to a location')
    location.add_argument('location_id', type=int)

    return parser.parse_args(argv)


def run(args):
    app = create_app()

    if args.command == 'build':
        build_database(app, enable_debug_data=args.enable_debug_data)
        return {'status': 'built'}

    with app.app_context():
        if args.command == 'availability':
            calculator = AvailabilityCalculator()
            if args.storage:
                return calculator.get_storage_availability(args.item_id).to_dict()
            return calculator.get_availability(args.item_id).to_dict()
        if args.command == 'history':
            return AllocationHistoryService.get_history_dicts(args.item_id, args.limit)
        if args.command == 'location':
            return LocationInventoryService.get_location_inventory_dicts(args.location_id)

    raise ValueError(f"Unknown command: {args.command}")


if __name__ == '__main__':
    args = parse_arguments()
    logger.debug(f"Running command: {args.command}")

    try:
        output = run(args)
    except InventoryDomainError as e:
        logger.warning(f"{args.command} failed: {e}")
        print(json.dumps({'error': type(e).__name__, 'message': str(e)}, indent=2))
        sys.exit(1)

    print(json.dumps(output, indent=2, default=str))
