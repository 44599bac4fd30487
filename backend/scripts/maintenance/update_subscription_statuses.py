#!/usr/bin/env python3
"""
Update Subscription Statuses

Reclassifies every non-cancelled subscription as active, expiring_soon or
expired from its expiry date. Meant for a daily cron job when the
maintenance endpoint is not reachable.

Usage:
    python3 update_subscription_statuses.py [--dry-run] [--verbose]

Author: TM3
Date: 2026-03-09
"""
import os
import sys
import argparse
import logging
from collections import Counter
from datetime import datetime, timezone

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from dotenv import load_dotenv
load_dotenv(os.path.join(os.path.dirname(__file__), '../../.env'))

from toolsy.core.config import settings
from toolsy.repositories.subscription_repository import SubscriptionRepository
from toolsy.services.subscription_service import SubscriptionService, classify_status

logger = logging.getLogger(__name__)


def preview(repository: SubscriptionRepository) -> Counter:
    """Status each subscription would get, without writing"""
    now = datetime.now(timezone.utc)
    changes = Counter()
    for row in repository.find_status_candidates():
        new_status = classify_status(row['status'], row['expiry_date'], now=now)
        if new_status != row['status']:
            changes[f"{row['status']} -> {new_status}"] += 1
    return changes


def main():
    parser = argparse.ArgumentParser(description='Refresh subscription statuses from expiry dates')
    parser.add_argument('--dry-run', action='store_true', help='Show the changes without saving them')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    logger.info("=" * 60)
    logger.info("SUBSCRIPTION STATUS REFRESH")
    logger.info("=" * 60)
    logger.info(f"Expiring soon window: {settings.EXPIRING_SOON_DAYS} days")

    try:
        if args.dry_run:
            changes = preview(SubscriptionRepository())
            if not changes:
                logger.info("No subscriptions need a status change")
            for transition, count in sorted(changes.items()):
                logger.info(f"  {transition}: {count}")
            return 0

        counts = SubscriptionService().refresh_statuses()
        logger.info(f"Updated: {counts['updated']}")
        logger.info(
            f"Active: {counts['active']}, expiring soon: {counts['expiring_soon']}, "
            f"expired: {counts['expired']}"
        )
        return 0

    except Exception as e:
        logger.error(f"Status refresh failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
