#!/usr/bin/env python3
"""
semtools Ontology Export Script
===============================
Parse an ontology file and export the full engine state to JSON.

Script: scripts/onto2json.py

Purpose:
    Build the ontology indexes once (aliases, closures, frequencies,
    paths and levels) and store them so later runs can skip parsing.

Usage:
    python scripts/onto2json.py -i data/hp.obo -o data/hp.json

Dependencies:
    - argparse: CLI argument parsing
    - semtools.ontology: Ontology, write_json

Input:
    - Ontology file (.obo, .obo.gz, .owl, .obojson)

Output:
    - JSON engine state readable by semtools.ontology.read_json

Called by:
    - User via command line

Version: 1.0.0
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from semtools.config import get_settings_manager
from semtools.ontology import Ontology, write_json

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(
        description="Export an ontology and its precomputed indexes to JSON",
    )
    parser.add_argument(
        "-i", "--input-file",
        type=str,
        required=True,
        help="Input file with the ontology in OBO format",
    )
    parser.add_argument(
        "-o", "--output-file",
        type=str,
        required=True,
        help="Output JSON path",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML settings file",
    )
    return parser.parse_args()


def main() -> int:
    """Main entry point"""
    args = parse_args()

    if args.config:
        get_settings_manager().load_from_yaml(args.config)

    logger.info(f"Loading ontology from {args.input_file}")
    ontology = Ontology.from_file(args.input_file)

    logger.info(f"Exporting ontology to {args.output_file}")
    write_json(ontology, args.output_file)
    return 0


if __name__ == "__main__":
    sys.exit(main())
