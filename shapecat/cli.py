"""``shapecat`` command: print the offerable catalog for the configured domains."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from rich.console import Console
from rich.table import Table

from shapecat.config import resolve_settings
from shapecat.exceptions import ShapecatError
from shapecat.logging import logging_session
from shapecat.types import OfferableInstanceType


def render_offerings(
    instance_types: Sequence[OfferableInstanceType],
    zone: str | None = None,
) -> Table:
    table = Table(
        title="Offerable Instance Types\n",
        title_style="bold",
        title_justify="center",
        show_edge=False,
        box=None,
        padding=(0, 2),
        header_style="bold bright_black",
    )
    table.add_column("Shape")
    table.add_column("vCPU", justify="right")
    table.add_column("Memory (GB)", justify="right")
    table.add_column("VNICs", justify="right")
    table.add_column("Gbps", justify="right")
    table.add_column("Zone")
    table.add_column("Capacity")
    table.add_column("$/hr", justify="right")
    table.add_column("Available")

    for entry, _, offerings in instance_types:
        for offering in offerings:
            if zone is not None and offering.zone != zone:
                continue
            table.add_row(
                entry.name,
                str(entry.vcpu),
                str(entry.memory_gb),
                str(entry.max_vnics),
                str(entry.max_bandwidth_gbps),
                offering.zone,
                offering.capacity_type,
                f"{offering.price:.4f}",
                "[green]yes[/green]" if offering.available else "[red]no[/red]",
            )
    return table


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="shapecat",
        description="List compute shapes and their offerings per zone",
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="Configuration file (default: ./shapecat.toml merged over ~/.shapecat/defaults.toml)",
    )
    parser.add_argument("--zone", type=str, default=None, help="Only show this zone")
    parser.add_argument("--region", type=str, default=None, help="OCI region override")
    parser.add_argument("--profile", type=str, default="DEFAULT", help="OCI config profile")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args(argv)

    from shapecat.adaptors.oci import OCIShapeLister
    from shapecat.pricing import pricing_from_config
    from shapecat.provider import InstanceTypeProvider

    console = Console()
    try:
        settings = resolve_settings(path=args.config)
    except ShapecatError as e:
        console.print(f"[red]error:[/red] {e}")
        return 2

    log_config = replace(settings.logging, level="DEBUG") if args.verbose else settings.logging
    try:
        with logging_session(log_config):
            provider = InstanceTypeProvider.from_options(
                settings.catalog,
                lister=OCIShapeLister.from_config(region=args.region, profile=args.profile),
                pricing=pricing_from_config(settings.pricing),
            )
            instance_types = provider.list_offerable_instance_types()
    except ShapecatError as e:
        console.print(f"[red]error:[/red] {e}")
        return 1

    console.print(render_offerings(instance_types, zone=args.zone))
    return 0


if __name__ == "__main__":
    sys.exit(main())
