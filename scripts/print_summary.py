"""Utility script to print the dashboard payload for the configured user."""

from __future__ import annotations

import argparse
import json

from digital_twin import config, identity, insights
from digital_twin.logging_setup import configure_logging


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--log-level", default=None, help="Override DIGITAL_TWIN_LOG_LEVEL")
    args = parser.parse_args()

    settings = config.load_settings()
    configure_logging(args.log_level or settings.log_level)
    store = identity.open_store(settings)
    payload = insights.calculate_summary(store.transactions)
    print(json.dumps({"user_id": store.user_id, **payload}, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
