"""Count pages of leads/contacts/companies/tasks in an amoCRM account.

Reads AMOCRM_* settings from the environment or .env, e.g.:
    AMOCRM_SUBDOMAIN=mycompany AMOCRM_TOKEN=... python scripts/count_pages.py leads --concurrent
"""
import argparse
import asyncio
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from amocrm import AmoCRMClient, AmoCRMError, CancelToken

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("count_pages")

CHECKERS = {
    "contacts": "create_contacts_page_checker",
    "leads": "create_leads_page_checker",
    "companies": "create_companies_page_checker",
    "tasks": "create_tasks_page_checker",
}


async def main(entity, concurrent, max_page, timeout):
    async with AmoCRMClient.from_env() as client:
        checker = getattr(client.pagination, CHECKERS[entity])()
        cancel = CancelToken(timeout=timeout) if timeout else None
        if concurrent:
            total = await client.pagination.find_total_pages_concurrent(checker, max_page, cancel)
        else:
            total = await client.pagination.find_total_pages(checker, max_page, cancel)
    logger.info(f"{entity}: {total} pages")
    return total


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("entity", choices=sorted(CHECKERS))
    parser.add_argument("--concurrent", action="store_true", help="two probes in flight per step")
    parser.add_argument("--max-page", type=int, default=0, help="highest page to probe (0 = default)")
    parser.add_argument("--timeout", type=float, default=None, help="give up after this many seconds")
    args = parser.parse_args()

    try:
        asyncio.run(main(args.entity, args.concurrent, args.max_page, args.timeout))
    except AmoCRMError as e:
        logger.error(f"Page count failed: {e}")
        sys.exit(1)
