#!/usr/bin/env python3
"""
Binary Payout Run.

Runs the binary cycle engine once for every member. Intended to be
scheduled externally (cron, systemd timer). Each member is computed in
its own session so one failure does not block the others.
"""

import argparse
import asyncio
import sys
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from binary_mlm.config.binary import BinaryConfig
from binary_mlm.config.logging import setup_logging
from binary_mlm.database import create_engine, create_session_maker
from binary_mlm.repositories.member_repository import MemberRepository
from binary_mlm.services.binary.atomic import get_payout_executor
from binary_mlm.services.binary.commission_engine import BinaryCommissionEngine
from binary_mlm.utils.exceptions import BinaryMLMError, is_transient_store_error


async def run_binary_payouts(
    timeout: float | None = None, database_url: str | None = None
) -> int:
    """
    Compute binary cycles for all members.

    Args:
        timeout: Per-member deadline in seconds
        database_url: Database to run against (defaults to DATABASE_URL)

    Returns:
        Number of members that failed
    """
    engine = create_engine(database_url)
    session_maker = create_session_maker(engine)
    config = BinaryConfig.from_settings()
    executor = get_payout_executor()

    paid_members = 0
    total_cycles = 0
    total_amount = Decimal("0")
    failures = 0

    try:
        async with session_maker() as session:
            member_ids = await MemberRepository(session).list_ids()

        logger.info(f"Binary payout run started for {len(member_ids)} members")

        for member_id in member_ids:
            async with session_maker() as session:
                commission_engine = BinaryCommissionEngine(
                    session, config=config, executor=executor
                )
                try:
                    result = await commission_engine.compute_binary_commission(
                        member_id, timeout=timeout
                    )
                except (BinaryMLMError, TimeoutError) as e:
                    failures += 1
                    logger.error(f"Binary payout failed for member {member_id}: {e}")
                    continue
                except SQLAlchemyError as e:
                    failures += 1
                    level = "WARNING" if is_transient_store_error(e) else "ERROR"
                    logger.log(
                        level, "Store error for member {}, skipped: {}", member_id, e
                    )
                    continue

            if result.cycles_paid:
                paid_members += 1
                total_cycles += result.cycles_paid
                total_amount += result.amount
    finally:
        await engine.dispose()

    logger.success(
        f"Binary payout run finished: {paid_members} members paid, "
        f"{total_cycles} cycles, {total_amount} total, {failures} failures"
    )
    return failures


def main() -> None:
    parser = argparse.ArgumentParser(description="Run binary cycle payouts")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-member deadline in seconds",
    )
    args = parser.parse_args()

    setup_logging()
    failures = asyncio.run(run_binary_payouts(timeout=args.timeout))
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
