"""
Command line.

    python -m storefront serve --host 0.0.0.0 --port 8000
    python -m storefront seed catalog.json --seller admin@example.com
"""

import argparse
import asyncio
import sys
from pathlib import Path

import uvicorn

from storefront._logging import configure_logging
from storefront.api import create_app
from storefront.config import Settings
from storefront.db import create_database
from storefront.seed import seed_from_file


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="storefront")
    parser.add_argument("--env-file", default=None, help="dotenv file to load")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    seed = sub.add_parser("seed", help="load categories and products from JSON")
    seed.add_argument("path", type=Path)
    seed.add_argument("--seller", default=None, help="email of the admin who sells them")
    return parser


async def _seed(settings: Settings, path: Path, seller: str | None) -> None:
    db = await create_database(settings.database_url)
    try:
        report = await seed_from_file(db, path, seller)
    finally:
        await db.dispose()
    print(
        f"categories: +{report.categories_created}  products: +{report.products_created}  "
        f"skipped: {report.skipped}"
    )


def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    settings = Settings.from_env(args.env_file)
    configure_logging(settings.log_level)

    if args.command == "serve":
        uvicorn.run(create_app(settings), host=args.host, port=args.port, log_config=None)
        return 0

    try:
        asyncio.run(_seed(settings, args.path, args.seller))
    except (OSError, ValueError, KeyError) as e:
        print(f"seed failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
