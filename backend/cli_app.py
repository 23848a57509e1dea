#!/usr/bin/env python3
"""
FluxStyle command-line wizard.

Walks through the same three steps as the web wizard: upload a photo (which
is analyzed straight away), pick or type a prompt, generate and download the
new look. Talks to a running API over HTTP; ``--serve`` starts one instead.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Callable, List, Optional

from wizard.client import DEFAULT_API_URL, StudioAPIError, StudioClient
from wizard.session import SessionBusy, UnsupportedFile, WizardSession
from wizard.state import (
    DEFAULT_MODEL,
    DOWNLOAD_FILENAME,
    EXAMPLE_PROMPTS,
    MODEL_PRESETS,
    FailedStage,
    GenerateStage,
    InvalidTransition,
    ResultStage,
)


class Colors:
    """ANSI colors for terminal"""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"


def info(msg):
    print(f"{Colors.BLUE}[INFO]{Colors.RESET} {msg}")


def success(msg):
    print(f"{Colors.GREEN}[OK]{Colors.RESET} {msg}")


def warn(msg):
    print(f"{Colors.YELLOW}[WARN]{Colors.RESET} {msg}")


def error(msg):
    print(f"{Colors.RED}[ERROR]{Colors.RESET} {msg}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fluxstyle",
        description="FluxStyle - AI hairstyle recommendations and transformations",
    )
    parser.add_argument("image", nargs="?", help="Photo to upload (any image/* file)")
    parser.add_argument(
        "--api-url",
        default=DEFAULT_API_URL,
        help=f"FluxStyle API base URL (default: {DEFAULT_API_URL})",
    )
    parser.add_argument("--prompt", help="Describe the change instead of being asked")
    parser.add_argument(
        "--recommendation",
        type=int,
        metavar="N",
        help="Use the description of recommendation N (1-based) as the prompt",
    )
    parser.add_argument(
        "--model",
        default=DEFAULT_MODEL,
        choices=[preset.id for preset in MODEL_PRESETS],
        help="Model preset (display only)",
    )
    parser.add_argument(
        "--output",
        default=DOWNLOAD_FILENAME,
        help=f"Where to save the result (default: {DOWNLOAD_FILENAME})",
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Never ask: use the first recommendation when no prompt is given, do not retry",
    )
    parser.add_argument("--serve", action="store_true", help="Start the API server instead")
    return parser


class FluxStyleCLI:
    """Interactive wizard driver"""

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        client_factory: Callable[..., StudioClient] = StudioClient,
    ):
        self.input = input_func
        self.client_factory = client_factory

    def print_banner(self):
        print(f"\n{Colors.CYAN}{Colors.BOLD}")
        print("=" * 60)
        print("          FLUXSTYLE - AI Hairstyle Studio")
        print("=" * 60)
        print(f"{Colors.RESET}")

    def _ask_retry(self, args, failed: FailedStage) -> bool:
        error(f"{failed.action.value.capitalize()} failed: {failed.error}")
        if args.yes:
            return False
        answer = self.input("Try again? [y/N] ").strip().lower()
        return answer in ("y", "yes")

    def _print_choices(self, stage: GenerateStage):
        print(f"\n{Colors.BOLD}AI Recommendations{Colors.RESET}")
        for i, rec in enumerate(stage.recommendations, start=1):
            print(f"  {Colors.CYAN}{i}.{Colors.RESET} {Colors.BOLD}{rec.title}{Colors.RESET}")
            print(f"     {Colors.DIM}{rec.description}{Colors.RESET}")

        print(f"\n{Colors.BOLD}Example prompts{Colors.RESET}")
        for i, example in enumerate(EXAMPLE_PROMPTS, start=1):
            print(f"  {Colors.CYAN}e{i}.{Colors.RESET} {example}")
        print()

    def _choose_prompt(self, session: WizardSession, args) -> bool:
        """Fill the prompt from the arguments or ask for it. False when nothing usable."""
        stage = session.stage
        if args.prompt:
            session.edit_prompt(args.prompt)
        elif args.recommendation is not None:
            try:
                session.apply_recommendation(args.recommendation - 1)
            except InvalidTransition:
                error(
                    f"No recommendation {args.recommendation}; "
                    f"the analysis returned {len(stage.recommendations)}"
                )
                return False
        elif args.yes:
            if not stage.recommendations:
                error("No recommendations to use; pass --prompt")
                return False
            session.apply_recommendation(0)
        else:
            self._print_choices(stage)
            while not session.stage.prompt.strip():
                answer = self.input(
                    "Describe the change (N = recommendation, eN = example): "
                ).strip()
                try:
                    if answer.isdigit():
                        session.apply_recommendation(int(answer) - 1)
                    elif answer[:1].lower() == "e" and answer[1:].isdigit():
                        session.apply_example(int(answer[1:]) - 1)
                    else:
                        session.edit_prompt(answer)
                except InvalidTransition:
                    warn(f"No such choice: {answer}")

        info(f"Prompt: {session.stage.prompt}")
        return True

    async def run_wizard(self, args) -> int:
        image = Path(args.image)
        if not image.is_file():
            error(f"File not found: {image}")
            return 1

        async with self.client_factory(base_url=args.api_url) as client:
            session = WizardSession(client)

            info(f"Uploading {image.name}...")
            try:
                await session.upload_file(image)
            except UnsupportedFile as e:
                error(str(e))
                return 1

            while isinstance(session.stage, FailedStage):
                if not self._ask_retry(args, session.stage):
                    return 1
                info("Retrying...")
                await session.retry()

            success(f"Analysis complete: {len(session.stage.recommendations)} recommendation(s)")
            session.select_model(args.model)

            if not self._choose_prompt(session, args):
                return 1

            info(f"Generating with {session.stage.model}... this can take a minute")
            await session.generate()
            while isinstance(session.stage, FailedStage):
                if not self._ask_retry(args, session.stage):
                    return 1
                info("Retrying...")
                await session.retry()

            result = session.stage
            if not isinstance(result, ResultStage):
                raise InvalidTransition("Generation finished without a result")
            success(f"Generated: {result.generated.url}")

            try:
                saved = await client.download(result.generated.url, args.output)
            except (StudioAPIError, OSError) as e:
                error(f"Download failed: {e}")
                return 1
            success(f"Saved to {saved}")
        return 0

    def serve(self) -> int:
        from main import run

        run()
        return 0

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Main entry point; returns the process exit code"""
        parser = build_parser()
        args = parser.parse_args(argv)

        if args.serve:
            return self.serve()
        if not args.image:
            parser.error("an image path is required (or --serve)")

        self.print_banner()
        try:
            return asyncio.run(self.run_wizard(args))
        except (SessionBusy, InvalidTransition) as e:
            error(str(e))
            return 1
        except KeyboardInterrupt:
            warn("Cancelled")
            return 1


if __name__ == "__main__":
    sys.exit(FluxStyleCLI().run())
