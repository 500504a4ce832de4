#!/usr/bin/env python3
"""
Wine balance scoring script.

Synthesizes characteristics for a harvest (or takes them directly), optionally
crushes and ferments them, then shows the per-characteristic balance
breakdown, the combined score and the estimated bottle price.
Can also re-score every batch in the batch store.
"""

import argparse
import sys
from pathlib import Path

from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from vintner.balance import calculate_characteristic_breakdown, calculate_wine_balance
from vintner.batches import WineBatchStore, evaluate_batch
from vintner.config import DEFAULT_SKEW_CURVE, RULES_PATH
from vintner.constants import CrushingMethod, FermentationMethod, FermentationTemperature, SkewCurve
from vintner.crushing import modify_crushing_characteristics
from vintner.error_handling import VintnerError, wrap_validation_error
from vintner.fermentation import apply_weekly_fermentation_effects
from vintner.grapes import list_varieties
from vintner.harvest import generate_default_characteristics, synthesize_characteristics
from vintner.pricing import calculate_estimated_price
from vintner.rules import RuleConfig, load_rule_config_or_default
from vintner.schema import CrushingOptions, EffectBreakdown, FermentationOptions, Overgrowth, WineCharacteristics
from vintner.scoring import calculate_wine_combined_score

console = Console()


def create_effects_table(title: str, breakdown: EffectBreakdown) -> Table:
    """Named effects applied by one winemaking stage."""
    table = Table(title=title, box=box.SIMPLE, header_style="bold green")
    table.add_column("Effect", style="dim white")
    table.add_column("Characteristic", style="cyan")
    table.add_column("Modifier", justify="right")
    for effect in breakdown.effects:
        table.add_row(effect.description, effect.characteristic.value, f"{effect.modifier:+.3f}")
    return table


def create_breakdown_table(characteristics: WineCharacteristics, rules: RuleConfig) -> Table:
    """Per-characteristic balance calculation."""
    table = Table(
        title="🍷 Balance Breakdown",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold cyan",
        title_style="bold white"
    )

    table.add_column("Characteristic", style="cyan", width=14)
    table.add_column("Value", justify="center", style="bold white")
    table.add_column("Range", justify="center")
    table.add_column("Inside", justify="right")
    table.add_column("Outside", justify="right")
    table.add_column("Scale", justify="right")
    table.add_column("Synergy", justify="right")
    table.add_column("Total", justify="right", style="bold")

    breakdown = calculate_characteristic_breakdown(
        characteristics, config=rules.adjustments, synergy_rules=rules.synergies
    )
    for characteristic, calc in breakdown.items():
        in_range = calc.adjusted_range.contains(calc.value)
        value_style = "bold green" if in_range else "bold red"
        table.add_row(
            characteristic.value.capitalize(),
            f"[{value_style}]{calc.value:.3f}[/{value_style}]",
            f"{calc.adjusted_range.min:.3f} - {calc.adjusted_range.max:.3f}",
            f"{calc.distance_inside:.3f}",
            f"{calc.distance_outside:.3f}",
            f"x{calc.penalty_scale:.2f}",
            f"-{calc.synergy_reduction:.0%}" if calc.synergy_reduction else "",
            f"{calc.final_total_distance:.3f}",
        )

    return table


def create_score_panel(balance: float, grape_quality: float, curve: SkewCurve, args) -> Panel:
    combined = calculate_wine_combined_score(balance, grape_quality, curve)
    price = calculate_estimated_price(combined, args.company_prestige, args.vineyard_prestige)

    if combined >= 0.75:
        border_style = "bold blue"
    elif combined >= 0.5:
        border_style = "bold yellow"
    else:
        border_style = "dim yellow"

    content = (
        f"[bold white]Balance:[/bold white] {balance:.1%}\n"
        f"[bold white]Grape Quality:[/bold white] {grape_quality:.1%}\n"
        f"[bold white]Combined ({curve.value}):[/bold white] [bold]{combined:.1%}[/bold]\n"
        f"[bold white]Estimated Price:[/bold white] [bold green]€{price:,.2f}[/bold green] per bottle"
    )
    return Panel(content, title="🎯 Wine Score", border_style=border_style, box=box.DOUBLE, padding=(1, 2))


def score_harvest(args, rules: RuleConfig) -> None:
    if args.characteristics:
        try:
            characteristics = WineCharacteristics.from_csv(args.characteristics)
        except ValueError:
            console.print("[bold red]Error:[/bold red] --characteristics needs six comma-separated values")
            sys.exit(1)
    elif args.region:
        overgrowth = Overgrowth(vegetation=args.vegetation, debris=args.debris)
        characteristics, breakdown = synthesize_characteristics(
            args.variety, args.country, args.region, args.altitude,
            args.ripeness, args.quality, overgrowth,
        )
        console.print(create_effects_table("🌱 Harvest Effects", breakdown))
        console.print()
    else:
        characteristics = generate_default_characteristics(args.variety)

    grape_quality = args.grape_quality
    if args.crushing:
        try:
            options = CrushingOptions(
                method=args.crushing,
                destemming=not args.keep_stems,
                cold_soak=args.cold_soak,
                pressing_intensity=args.pressure,
            )
        except ValidationError as e:
            raise wrap_validation_error(e, "reading crushing options") from e
        crushing = modify_crushing_characteristics(characteristics, options)
        characteristics = crushing.characteristics
        grape_quality = max(0.0, grape_quality + crushing.quality_penalty)
        console.print(create_effects_table("🍇 Crushing Effects", crushing.breakdown))
        console.print(f"  Yield x{crushing.yield_multiplier:.2f}, grape quality {crushing.quality_penalty:+.3f}\n")

    if args.fermentation:
        options = FermentationOptions(method=args.fermentation, temperature=args.temperature)
        characteristics, breakdown = apply_weekly_fermentation_effects(characteristics, options, weeks=args.weeks)
        console.print(f"[dim]Fermented {args.weeks} week(s): {options.method.value}, "
                      f"{options.temperature.value}[/dim]\n")

    result = calculate_wine_balance(characteristics, config=rules.adjustments, synergy_rules=rules.synergies)
    console.print(create_breakdown_table(characteristics, rules))
    console.print()
    console.print(create_score_panel(result.score, grape_quality, SkewCurve(args.curve), args))
    console.print()


def rescore_store(args, rules: RuleConfig) -> None:
    store = WineBatchStore(args.store) if args.store else WineBatchStore()
    batches = store.list_batches(company_id=args.company)
    if not batches:
        console.print("[yellow]No wine batches stored.[/yellow]")
        return

    table = Table(title="📦 Wine Batches", box=box.ROUNDED, header_style="bold cyan")
    table.add_column("ID", style="dim", max_width=10)
    table.add_column("Vineyard", style="white")
    table.add_column("Variety", style="cyan")
    table.add_column("Year", justify="center")
    table.add_column("Balance", justify="right")
    table.add_column("Combined", justify="right", style="bold")
    table.add_column("Price", justify="right", style="green")

    for batch in batches:
        scored = evaluate_batch(batch, rules=rules, curve=args.curve)
        store.save_batch(scored)
        price = calculate_estimated_price(scored.combined_score, args.company_prestige, args.vineyard_prestige)
        table.add_row(
            scored.id[:8], scored.vineyard_name, scored.variety, str(scored.harvest_year),
            f"{scored.balance:.1%}", f"{scored.combined_score:.1%}", f"€{price:,.2f}",
        )

    console.print(table)
    console.print(f"\n[green]✓[/green] Re-scored {len(batches)} batch(es)\n")


def main():
    parser = argparse.ArgumentParser(
        description="Vintner Wine Balance Scorer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --variety Barbera                                     Score the base grape profile
  %(prog)s --variety Barbera --country Italy --region Piedmont   Synthesize a harvest and score it
  %(prog)s --characteristics 0.7,0.5,0.6,0.5,0.5,0.6             Score explicit characteristics
  %(prog)s --crushing "Pneumatic Press" --pressure 0.7           Crush before scoring
  %(prog)s --fermentation "Extended Maceration" --weeks 3        Ferment before scoring
  %(prog)s --rescore --rules data/rules.json                     Re-score every stored batch
        """
    )

    parser.add_argument('--variety', '-v', default='Barbera', choices=list_varieties(), help='Grape variety')
    parser.add_argument('--country', default='Italy', help='Vineyard country')
    parser.add_argument('--region', '-r', help='Vineyard region (enables harvest synthesis)')
    parser.add_argument('--altitude', type=float, default=300.0, help='Vineyard altitude in meters')
    parser.add_argument('--ripeness', type=float, default=0.5, help='Ripeness at harvest (0-1)')
    parser.add_argument('--quality', type=float, default=0.5, help='Vineyard quality factor (0-1)')
    parser.add_argument('--vegetation', type=float, default=0.0, help='Years since clearing vegetation')
    parser.add_argument('--debris', type=float, default=0.0, help='Years since clearing debris')
    parser.add_argument(
        '--characteristics', '-c',
        metavar='A,AR,B,SP,SW,T',
        help='Explicit characteristics: acidity,aroma,body,spice,sweetness,tannins'
    )
    parser.add_argument('--crushing', choices=[m.value for m in CrushingMethod], help='Crush with this press')
    parser.add_argument('--keep-stems', action='store_true', help='Skip destemming when crushing')
    parser.add_argument('--cold-soak', action='store_true', help='Cold soak before pressing')
    parser.add_argument('--pressure', type=float, default=0.5, help='Pressing intensity (0-1, press dependent)')
    parser.add_argument('--fermentation', choices=[m.value for m in FermentationMethod], help='Fermentation method')
    parser.add_argument(
        '--temperature',
        choices=[t.value for t in FermentationTemperature],
        default=FermentationTemperature.AMBIENT.value,
        help='Fermentation temperature'
    )
    parser.add_argument('--weeks', type=int, default=1, help='Weeks of fermentation')
    parser.add_argument('--grape-quality', type=float, default=0.5, help='Grape quality for the combined score')
    parser.add_argument('--company-prestige', type=float, help='Company prestige for the price estimate')
    parser.add_argument('--vineyard-prestige', type=float, help='Vineyard prestige for the price estimate')
    parser.add_argument(
        '--curve',
        choices=[c.value for c in SkewCurve],
        default=None,
        help='Skew curve for the combined score (default from VINTNER_SKEW_CURVE)'
    )
    parser.add_argument(
        '--rules',
        default=RULES_PATH,
        help='Rule tables JSON (default from VINTNER_RULES; built-in tables when missing)'
    )
    parser.add_argument('--rescore', action='store_true', help='Re-score every batch in the batch store')
    parser.add_argument('--store', help='Batch store CSV (default from VINTNER_BATCH_STORE)')
    parser.add_argument('--company', help='Only re-score batches of this company')

    args = parser.parse_args()
    if args.weeks < 0:
        parser.error("--weeks must be non-negative")

    console.print()
    console.print(Panel.fit("[bold white]🍷 Vintner Wine Balance Scorer[/bold white]", border_style="cyan"))
    console.print()

    try:
        rules = load_rule_config_or_default(args.rules)
        if args.rescore:
            rescore_store(args, rules)
        else:
            args.curve = args.curve or DEFAULT_SKEW_CURVE.value
            score_harvest(args, rules)
    except VintnerError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
