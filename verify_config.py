#!/usr/bin/env python3
"""Check that config.example.yaml parses and validates against AppConfig."""

import sys
from pathlib import Path

import yaml

from alert_engine.config.exceptions import ConfigurationError
from alert_engine.config.loader import build_app_config
from alert_engine.config.validators import check_for_warnings

KNOWN_SECTIONS = {"matching", "dispatch", "backend", "alerts", "email", "logging"}


def verify_config_structure(config_file: Path = Path("config.example.yaml")) -> bool:
    """Validate the example configuration file and print a short report."""
    if not config_file.exists():
        print(f"✗ {config_file} not found")
        return False

    try:
        with open(config_file, "r") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        print(f"✗ Failed to parse {config_file}: {e}")
        return False

    if not isinstance(raw, dict):
        print(f"✗ {config_file} must contain a mapping at the top level")
        return False

    unknown = sorted(set(raw) - KNOWN_SECTIONS)
    if unknown:
        print(f"✗ Unknown sections: {', '.join(unknown)}")
        return False

    try:
        config = build_app_config(raw)
    except ConfigurationError as e:
        print(f"✗ {config_file} validation failed:\n{e}")
        return False

    print(f"✓ {config_file} is valid")
    print(f"  - {len(config.matching.region_suffixes)} region suffixes")
    print(f"  - Budget defaults: {config.matching.default_min_budget}-{config.matching.default_max_budget}")
    print(f"  - Dispatch workers: {config.dispatch.max_workers}, retries: {config.dispatch.max_retries}")
    print(f"  - Property URL: {config.alerts.property_url_template}")

    for warning in check_for_warnings(raw):
        print(f"  ! {warning}")
    return True


if __name__ == "__main__":
    sys.exit(0 if verify_config_structure() else 1)
