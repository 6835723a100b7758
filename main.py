#!/usr/bin/env python3
"""
Payment Frame Filler - command line entry point

Opens a checkout page, fills the embedded card widget and prints the per-field
result. Optionally submits and approves a 3DS test challenge.

    python main.py --url https://shop.example/checkout --card "4242 4242 4242 4242" --expiry 12/34 --cvc 123
"""
import argparse
import json
import sys

from pydantic import ValidationError
from rich import print as rprint

from browser_provider import BrowserConfig, create_browser_provider
from error_handling import RequiredElementTimeoutError
from filler_config import FillerConfig
from handlers.native_keyboard import PyAutoGuiKeyboard, UnavailableKeyboard
from models import FillResult
from payment_form_filler import PaymentFormFiller

_OUTCOME_STYLE = {
    "succeeded": "[green]succeeded[/green]",
    "fallback_used": "[yellow]fallback_used[/yellow]",
    "failed": "[red]failed[/red]",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fill a hosted card payment widget on a checkout page.")
    parser.add_argument("--url", required=True, help="Checkout page that embeds the card widget")
    parser.add_argument("--card", required=True, help="Card number (spaces and dashes allowed)")
    parser.add_argument("--expiry", required=True, help="Expiry as MM/YY or MMYY")
    parser.add_argument("--cvc", required=True, help="Card security code")
    parser.add_argument("--postal-code", default=None, help="Postal code, if the widget asks for one")
    parser.add_argument("--headless", action="store_true", help="Run browser in headless mode")
    parser.add_argument("--profile", default=None, help="Browser profile directory to reuse (cookies, saved sessions)")
    parser.add_argument("--channel", default=None, help="Browser channel, e.g. chrome or msedge")
    parser.add_argument("--cdp-url", default=None, help="Attach to a running browser over CDP instead of launching one")
    parser.add_argument("--submit", action="store_true", help="Click the pay button after filling")
    parser.add_argument("--three-ds", action="store_true", help="Approve a 3DS test challenge after submitting")
    parser.add_argument("--no-native", action="store_true", help="Never fall back to OS-level keystrokes")
    parser.add_argument("--preset", choices=["debug", "production"], default="debug")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    return parser


def build_browser_config(args: argparse.Namespace) -> BrowserConfig:
    return BrowserConfig(
        provider_type="remote" if args.cdp_url else "local",
        headless=args.headless,
        user_data_dir=args.profile,
        channel=args.channel,
        remote_cdp_url=args.cdp_url,
    )


def print_result(result: FillResult) -> None:
    status = "[green]✅ filled[/green]" if result.all_succeeded else "[red]❌ incomplete[/red]"
    rprint(f"\n[bold]Payment widget:[/bold] {result.mode.value}  {status}  ({result.duration_ms:.0f}ms)")
    for name, outcome in result.outcomes.items():
        rprint(f"   {name.value:<12} {_OUTCOME_STYLE[outcome.value]}")
    if result.frame_tree:
        rprint("[dim]No widget layout matched; see the frame tree above to update selectors.[/dim]")


def run(args: argparse.Namespace) -> int:
    config = FillerConfig.production() if args.preset == "production" else FillerConfig.debug()
    keyboard = UnavailableKeyboard() if args.no_native or args.headless else PyAutoGuiKeyboard()

    provider = create_browser_provider(build_browser_config(args))
    try:
        page = provider.get_page()
        page.goto(args.url)

        filler = PaymentFormFiller(page, config=config, native_keyboard=keyboard)
        try:
            result = filler.fill_payment_form(args.card, args.expiry, args.cvc, args.postal_code)
        except ValidationError as e:
            rprint(f"[red]Invalid card details:[/red] {e}")
            return 2

        if args.json:
            print(json.dumps(result.to_dict(), indent=2))
        else:
            print_result(result)

        if not result.all_succeeded:
            return 1

        if args.submit:
            try:
                filler.submit_payment()
            except RequiredElementTimeoutError as e:
                rprint(f"[red]❌ {e.message}[/red]")
                return 1
            rprint("[green]✅ Payment submitted[/green]")
            if args.three_ds and filler.complete_3ds_if_present():
                rprint("[green]✅ 3DS challenge approved[/green]")
        return 0
    finally:
        provider.close()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
