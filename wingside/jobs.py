"""Loyalty maintenance jobs.

Designed to be run daily from cron when the HTTP cron endpoints are not used:

    python -m wingside.jobs tier-downgrades
    python -m wingside.jobs expire-points
    python -m wingside.jobs tier-downgrades --dry-run

Each run re-reads current balances, so a dormant Wingzard drops one tier per
qualifying run.
"""
import asyncio
import argparse
import logging

from wingside.config import settings
from wingside.database import async_session_factory
from wingside.services.loyalty_service import LoyaltyService

logger = logging.getLogger("wingside.jobs")


async def run(job: str, dry_run: bool = False) -> dict:
    async with async_session_factory() as session:
        service = LoyaltyService(session)
        if job == "tier-downgrades":
            if dry_run:
                preview = await service.preview_tier_downgrades()
                return {"affected": preview.total_affected}
            result = await service.process_tier_downgrades()
            return {"processed": result.downgrades_processed, "failed": result.failed}

        if dry_run:
            preview = await service.preview_points_expiration()
            return {"affected": preview.total_affected, "points": preview.total_points_to_expire}
        result = await service.process_points_expiration()
        return {"processed": result.expirations_processed, "failed": result.failed}


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Wingside loyalty maintenance")
    parser.add_argument("job", choices=["tier-downgrades", "expire-points"])
    parser.add_argument("--dry-run", action="store_true", help="preview without writing")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    result = asyncio.run(run(args.job, args.dry_run))
    logger.info(f"{args.job}: {result}")


if __name__ == "__main__":
    main()
