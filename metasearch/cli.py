import argparse
import asyncio
import json
from typing import List, Optional
from dotenv import load_dotenv
from metasearch.config import SearchConfig
from metasearch.errors import SearchError
from metasearch.services.aggregator import build_aggregator
from metasearch.services.urls import is_url, normalize_url


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Search the configured providers, or normalize a URL.")
    parser.add_argument("input", nargs="+", help="search query or URL")
    parser.add_argument("--region", default=None, help="global, us, eu or asia")
    parser.add_argument("--json", action="store_true", help="print the raw response payload")
    return parser.parse_args(argv)


async def run(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    text = " ".join(args.input).strip()

    if is_url(text):
        print(normalize_url(text))
        return 0

    try:
        async with build_aggregator(SearchConfig.from_env()) as aggregator:
            response = await aggregator.search_web(text, args.region)
    except SearchError as e:
        print(f"Error: {e}")
        return 1

    if args.json:
        print(json.dumps(response.to_payload(), indent=2))
        return 0

    if response.notice:
        print(f"WARNING: {response.notice}")
    print(f"Results for: {text}")
    for idx, result in enumerate(response.results, 1):
        print(f"{idx}. {result.title}")
        print(f"   {result.url}")
        if result.snippet:
            print(f"   {result.snippet}")
    if response.images:
        print(f"\nImages ({len(response.images)}):")
        for image in response.images:
            print(f"- {image.title}: {image.url}")
    return 0


def main() -> None:
    load_dotenv()
    raise SystemExit(asyncio.run(run()))


if __name__ == "__main__":
    main()
