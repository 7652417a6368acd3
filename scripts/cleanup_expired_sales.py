"""
Delete expired PENDING sales.

Run periodically (e.g. every minute from cron) to release sales whose
reservation window has closed:

    python scripts/cleanup_expired_sales.py
    python scripts/cleanup_expired_sales.py --dry-run
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import configure_logging, get_settings
from domain.errors import PersistenceError
from domain.order import OrderStatus
from domain.time import utc_now
from repositories.client import get_supabase
from repositories.order_repository import OrderRepository
from services.sale_lifecycle_service import cleanup_expired_sales

logger = logging.getLogger("cleanup_expired_sales")


def main() -> int:
    parser = argparse.ArgumentParser(description="Delete expired PENDING sales")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List expired sales without deleting them",
    )
    args = parser.parse_args()

    configure_logging(get_settings().log_level)
    orders = OrderRepository(get_supabase())
    now = utc_now()

    try:
        if args.dry_run:
            expired = [
                order for order in orders.list_orders()
                if order.status is OrderStatus.PENDING and order.expires_at and order.expires_at <= now
            ]
            print(f"{len(expired)} expired pending sales")
            for order in expired:
                print(f"  {order.order_id}  expired at {order.expires_at.isoformat()}")
            return 0

        result = cleanup_expired_sales(orders, now=now)
    except PersistenceError as exc:
        logger.error("Cleanup failed: %s", exc)
        return 1

    print(f"Cleaned up {result.deleted_count} expired sales")
    for order_id in result.deleted_ids:
        print(f"  {order_id}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
