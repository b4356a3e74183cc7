from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import Any, Dict, List, Optional

from author_crawler.config import DEFAULT_MAX_POSTS, DEFAULT_REQUESTS_PER_SECOND, SORT_CHOICES, CrawlOptions, CrawlSettings
from author_crawler.errors import ConfigError
from author_crawler.orchestrator import CrawlOrchestrator
from author_crawler.proxies import filter_healthy, load_proxy_list
from author_crawler.rotation import build_pool
from author_crawler.session import BrowserSession
from author_crawler.storage import JsonlStorage

logger = logging.getLogger("author_crawler")


def config_logger(log_file: Optional[str] = None, verbose: bool = False) -> None:
    """Console handler at INFO (DEBUG with --verbose); optional file handler at DEBUG."""
    logger.setLevel(logging.DEBUG)
    fmt = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(fmt)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(fmt)
        logger.addHandler(file_handler)


def _load_input(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ConfigError([f"{path} must contain a JSON object"])
    return data


def _build_input(args: argparse.Namespace) -> Dict[str, Any]:
    """Merge the --input file with explicit flags; flags win."""
    data: Dict[str, Any] = _load_input(args.input) if args.input else {}
    if args.author_url:
        data["authorUrl"] = args.author_url
    if args.max_posts is not None:
        data["maxPosts"] = args.max_posts
    if args.rps is not None:
        data["requestsPerSecond"] = args.rps
    if args.sort_by:
        data["sortBy"] = args.sort_by
    if args.tags:
        data["tags"] = [t for t in args.tags.split(",") if t.strip()]
    if args.start or args.end:
        data["dateRange"] = {"start": args.start, "end": args.end}
    if args.no_content:
        data["includeContent"] = False
    if args.comments:
        data["includeComments"] = True
    if args.no_publication:
        data["includePublication"] = False
    if args.premium:
        data["premiumContent"] = True
    if args.proxy_list:
        data["useProxy"] = True
    return data


def _load_proxies(source: Optional[str], check: bool) -> List[str]:
    if not source:
        return []
    endpoints = load_proxy_list(source)
    logger.info("Loaded %d proxy endpoints from %s", len(endpoints), source)
    if check:
        endpoints = filter_healthy(endpoints)
    return endpoints


async def run_crawl(options: CrawlOptions, settings: CrawlSettings, proxies: List[str], results_path: str) -> int:
    storage = JsonlStorage(results_path)
    orchestrator = CrawlOrchestrator(
        BrowserSession(settings),
        settings=settings,
        identities=build_pool(proxies),
        on_article=lambda record: storage.write("article", record.to_dict()),
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, orchestrator.cancel)
        except NotImplementedError:
            pass

    try:
        result = await orchestrator.run(options.author_url, options)
        storage.write("result", result.to_dict())
    finally:
        storage.close()

    stats = result.stats
    print(
        f"\nDONE: articles={stats['successfulExtractions']} errors={stats['errors']} "
        f"paywalls={stats['paywallHits']} skipped={stats['skippedPremium']} "
        f"duration={stats['durationSeconds']}s"
    )
    return 0 if result.author is not None else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Crawl one author's articles")
    parser.add_argument("author_url", nargs="?", help="Author profile URL")
    parser.add_argument("--input", help="JSON file with run options (camelCase keys)")

    parser.add_argument("--max-posts", type=int, help=f"Max articles to extract (default {DEFAULT_MAX_POSTS})")
    parser.add_argument("--rps", type=float, help=f"Requests per second (default {DEFAULT_REQUESTS_PER_SECOND})")
    parser.add_argument("--sort-by", choices=SORT_CHOICES, help="Article ordering")
    parser.add_argument("--tags", help="Comma-separated tag filter")
    parser.add_argument("--start", help="Only articles published on/after this date")
    parser.add_argument("--end", help="Only articles published on/before this date")

    parser.add_argument("--no-content", action="store_true", help="Skip article body extraction")
    parser.add_argument("--comments", action="store_true", help="Extract comments")
    parser.add_argument("--no-publication", action="store_true", help="Skip publication details")
    parser.add_argument("--premium", action="store_true", help="Keep premium/member-only articles")

    parser.add_argument("--proxy-list", help="Proxy endpoints file or http(s) URL; enables proxy use")
    parser.add_argument("--check-proxies", action="store_true", help="Drop proxies that fail a health probe")

    parser.add_argument("--results", default="results.jsonl", help="Output JSONL file path")
    parser.add_argument("--log-file", help="Also write DEBUG logs to this file")
    parser.add_argument("--headful", action="store_true", help="Show the browser window")
    parser.add_argument("-v", "--verbose", action="store_true", help="DEBUG logging on the console")

    args = parser.parse_args(argv)
    config_logger(args.log_file, args.verbose)

    try:
        options = CrawlOptions.from_input(_build_input(args))
    except ConfigError as exc:
        for problem in exc.errors:
            logger.error("Invalid input: %s", problem)
        return 2

    settings = CrawlSettings(headless=not args.headful)
    proxies = _load_proxies(args.proxy_list, args.check_proxies)
    return asyncio.run(run_crawl(options, settings, proxies, args.results))


if __name__ == "__main__":
    sys.exit(main())
