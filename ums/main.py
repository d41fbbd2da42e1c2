"""
Main entry point for the University Management System.
"""

import argparse
import logging
import sys
from typing import Optional

from .cli import UniversityCli
from .config import UmsConfig, load_config
from .core.data_model import RecordStore
from .core.exceptions import ConfigurationError
from .persistence import PersistenceManager
from .services import UniversityService


def build_service(config: UmsConfig) -> UniversityService:
    """Wire the record store, backend and service, and run the startup contract."""
    store = RecordStore()
    backend = PersistenceManager.from_config(config)
    service = UniversityService(store, backend)
    state = service.start()
    print(f"✓ Persistence initialized: {state.value}")
    counts = store.counts()
    print(f"✓ Loaded {counts['students']} students, {counts['teachers']} teachers, "
          f"{counts['courses']} courses")
    return service


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="University Management System")
    parser.add_argument("--config", type=str, help="Configuration file path")
    parser.add_argument("--demo", action="store_true", help="Load demo data before starting the menu")
    parser.add_argument("--log-level", type=str, help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--no-persistence", action="store_true", help="Keep all data in memory only")

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        overrides = {}
        if args.log_level:
            overrides["log_level"] = args.log_level
        if args.no_persistence:
            overrides["persistence_enabled"] = False
        if overrides:
            config = UmsConfig(**{**config.model_dump(), **overrides})
    except ConfigurationError as e:
        print(f"Failed to initialize the system: {e.message}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Failed to initialize the system: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(level=config.log_level, format="%(levelname)s - %(message)s")

    service = build_service(config)
    if args.demo:
        service.load_demo_data()

    try:
        UniversityCli(service).run()
    except KeyboardInterrupt:
        print("\nShutting down...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
