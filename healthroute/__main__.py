import argparse
import json
import logging
import sys

from .ai_agent import ExplanationProvider
from .config import load_settings
from .data import DEMO_AQI, DEMO_ROUTES
from .models import HealthProfile
from .planner import rank_routes_payload


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="healthroute",
                                     description="Rank candidate routes by health score (air quality, distance, traffic).")
    parser.add_argument("--input", help='JSON file: {"routes": [...], "aqiData": [...], "healthProfile": "..."}')
    parser.add_argument("--demo", action="store_true", help="Use the bundled Kuala Lumpur sample routes")
    parser.add_argument("--profile", choices=[p.value for p in HealthProfile],
                        help="Health profile (overrides healthProfile in the input file)")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.demo:
        request = {"routes": DEMO_ROUTES, "aqiData": DEMO_AQI}
    elif args.input:
        with open(args.input, encoding="utf-8") as f:
            request = json.load(f)
    else:
        parser.print_help()
        print("\nExample usage:")
        print("  python -m healthroute --demo --profile sensitive")
        print("  python -m healthroute --input request.json")
        return 2

    settings = load_settings()
    provider = ExplanationProvider.from_settings(settings)
    profile = args.profile or request.get("healthProfile")

    out = rank_routes_payload(request.get("routes") or [], request.get("aqiData") or [], profile,
                              provider=provider, max_workers=settings.max_workers)
    print(json.dumps(out, ensure_ascii=False, indent=2))
    return 1 if "error" in out else 0


if __name__ == "__main__":
    sys.exit(main())
