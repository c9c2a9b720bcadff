from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from palletizer.client import PalletizerClient
from palletizer.config import Settings
from palletizer.errors import PalletizerClientError
from palletizer.models import PackingRequest, PackingResponse
from palletizer.packing.engine import PackingLimits
from palletizer.pallets import get_pallet_constraints
from palletizer.service import run_packing


def load_request(path: str, preset: Optional[str] = None) -> PackingRequest:
    """Read a packing request JSON file ('-' for stdin), optionally swapping in a pallet preset."""
    if path == "-":
        data = json.load(sys.stdin)
    else:
        data = json.loads(Path(path).read_text(encoding="utf-8"))

    if preset:
        data["pallet_constraints"] = get_pallet_constraints(preset).model_dump()
    return PackingRequest.model_validate(data)


def write_response(response: PackingResponse, path: str) -> None:
    """
    Write a packing response to a JSON file.

    Creates parent folders if needed and overwrites the file on every run.
    """
    output_path = Path(path).resolve()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(response.model_dump(mode="json", exclude_none=True), indent=2, sort_keys=True),
        encoding="utf-8",
    )


def print_summary(response: PackingResponse) -> None:
    s = response.summary
    print(
        f"Pallets={s.total_pallets}, Packed={s.total_cartons_packed}, "
        f"AvgUtil={s.average_utilization:.2f}%, Time={s.computation_time_ms} ms"
    )
    for pallet in response.pallets:
        cog = pallet.center_of_gravity
        print(
            f"  pallet {pallet.pallet_id}: {len(pallet.cartons)} cartons, "
            f"weight={pallet.total_weight:.1f} g, height={pallet.total_height:.1f} mm, "
            f"util={pallet.utilization_percentage:.2f}%, "
            f"cog=({cog.x:.1f}, {cog.y:.1f}, {cog.z:.1f})"
        )
    if response.error:
        print(f"Error: {response.error}")


def _cmd_pack(args: argparse.Namespace, settings: Settings) -> int:
    request = load_request(args.input, args.preset)
    if args.remote:
        with PalletizerClient(args.remote, timeout=settings.timeout) as client:
            response = client.pack(request)
    else:
        limits = PackingLimits(
            max_passes=settings.max_passes,
            max_anchors=settings.max_anchors,
            max_instances=settings.max_instances,
        )
        response = run_packing(request, limits=limits)

    print_summary(response)
    if args.output:
        write_response(response, args.output)
        print(f"Response written to {args.output}")
    return 1 if response.error else 0


def _cmd_health(args: argparse.Namespace, settings: Settings) -> int:
    with PalletizerClient(args.remote or settings.base_url, timeout=settings.timeout) as client:
        print(client.health().status)
    return 0


def _cmd_metrics(args: argparse.Namespace, settings: Settings) -> int:
    with PalletizerClient(args.remote or settings.base_url, timeout=settings.timeout) as client:
        metrics = client.metrics()
    print(json.dumps(metrics.model_dump(), indent=2, sort_keys=True))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="palletizer", description="3D pallet packing")
    sub = parser.add_subparsers(dest="command", required=True)

    pack = sub.add_parser("pack", help="Pack cartons described in a request JSON file")
    pack.add_argument("input", help="Path to a packing request JSON file (use '-' for stdin)")
    pack.add_argument("--output", help="Write the packing response JSON here")
    pack.add_argument("--remote", help="Pack on a palletizer service at this base URL instead of locally")
    pack.add_argument("--preset", help="Use a standard pallet (40x72 or 40x48) instead of the file's constraints")
    pack.set_defaults(func=_cmd_pack)

    health = sub.add_parser("health", help="Check a palletizer service")
    health.add_argument("--remote", help="Service base URL (default: PALLETIZER_BASE_URL)")
    health.set_defaults(func=_cmd_health)

    metrics = sub.add_parser("metrics", help="Show a palletizer service's counters")
    metrics.add_argument("--remote", help="Service base URL (default: PALLETIZER_BASE_URL)")
    metrics.set_defaults(func=_cmd_metrics)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env()
        logging.basicConfig(
            level=getattr(logging, settings.log_level, logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        return args.func(args, settings)
    # ValueError also covers bad JSON, unknown presets and pydantic schema errors
    except (PalletizerClientError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
