"""
Command-line interface for the EcoFarm assistant.

Usage:
    python -m ecofarm decide banana=0.9 plate=0.05
    python -m ecofarm classify photo.jpg
    python -m ecofarm classify photo.jpg --remote https://ecofarm.example.com
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

import magic
from pydantic import ValidationError

from ecofarm.config import get_settings
from ecofarm.errors import EcoFarmError
from ecofarm.models.waste import LabelGuess, WastePrediction
from ecofarm.services.label_oracle import OracleProvider, load_gemini_oracle
from ecofarm.services.remote_classifier import RemoteWasteClient
from ecofarm.services.waste_analysis import analyze_waste_image
from ecofarm.services.waste_classifier import decide


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="ecofarm",
        description="EcoFarm CLI - classify waste from the command line"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    decide_parser = subparsers.add_parser(
        "decide",
        help="Run the decision engine on label guesses (highest probability first)"
    )
    decide_parser.add_argument(
        "guesses",
        nargs="*",
        metavar="LABEL=PROB",
        help="Label guesses, e.g. banana=0.9 'plastic bottle=0.05'"
    )

    classify_parser = subparsers.add_parser(
        "classify",
        help="Classify a waste photo"
    )
    classify_parser.add_argument("image", type=str, help="Path to the image file")
    classify_parser.add_argument(
        "--remote",
        "-r",
        type=str,
        default=None,
        help="Base URL of a remote EcoFarm service (default: REMOTE_API_BASE, else classify locally with Gemini)"
    )
    classify_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Remote request timeout in seconds (default: REMOTE_TIMEOUT_SECONDS)"
    )

    return parser


def parse_guess(text: str) -> LabelGuess:
    """Parse 'label=probability' (the label may itself contain '=')."""
    label, sep, prob = text.rpartition("=")
    if not sep or not label.strip():
        raise argparse.ArgumentTypeError(f"Expected LABEL=PROB, got {text!r}")
    try:
        probability = float(prob)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid probability in {text!r}") from None
    return LabelGuess(label=label.strip(), probability=probability)


async def _classify(image_path: Path, remote: Optional[str], timeout: Optional[float]) -> WastePrediction:
    content = image_path.read_bytes()
    mime_type = magic.from_buffer(content, mime=True)
    settings = get_settings()

    remote = remote or settings.remote_api_base
    if remote:
        client = RemoteWasteClient(remote, timeout_seconds=timeout or settings.remote_timeout_seconds)
        return await client.classify(content, image_path.name, mime_type)

    provider = OracleProvider(load_gemini_oracle)
    return await analyze_waste_image(
        provider,
        content,
        mime_type,
        top_k=settings.oracle_top_k,
        low_confidence_threshold=settings.low_confidence_threshold,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "decide":
        try:
            guesses = [parse_guess(g) for g in args.guesses]
        except argparse.ArgumentTypeError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2
        try:
            decision = decide(guesses)
        except EcoFarmError as e:
            print(f"Analysis failed: {e}", file=sys.stderr)
            return 1
        print(json.dumps(decision.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return 0

    if args.command == "classify":
        image_path = Path(args.image)
        if not image_path.is_file():
            print(f"Error: image not found: {image_path}", file=sys.stderr)
            return 1
        try:
            prediction = asyncio.run(_classify(image_path, args.remote, args.timeout))
        except EcoFarmError as e:
            print(f"Analysis failed: {e}", file=sys.stderr)
            return 1
        except ValidationError as e:
            print(f"Configuration error: {e}", file=sys.stderr)
            return 1
        print(json.dumps(prediction.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
