"""Maintenance script: re-resolve ingredient ids and categories on stored shopping lists.

Usage:
    python -m kitchen.utilities.repair [--household HOUSEHOLD_ID] [--data-file PATH]
"""
import argparse
import asyncio
import json
import logging
import sys

from kitchen.api.core import KitchenCore
from kitchen.utilities.config import DATA_FILE, configure_logging

logger = logging.getLogger(__name__)


async def run(data_file=DATA_FILE, household_id=None):
    core = KitchenCore.from_file(data_file)
    return await core.repair_shopping_lists(household_id)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Repair ingredient data on stored shopping lists")
    parser.add_argument("--household", dest="household_id", default=None, help="only repair this household")
    parser.add_argument("--data-file", default=str(DATA_FILE), help="JSON store file")
    args = parser.parse_args(argv)

    configure_logging()
    try:
        summary = asyncio.run(run(args.data_file, args.household_id))
    except Exception:
        logger.exception("Shopping list repair failed")
        return 1
    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
