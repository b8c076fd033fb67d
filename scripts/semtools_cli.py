#!/usr/bin/env python3
"""
semtools Profile Processing Script
==================================
Clean, expand, translate and compare term profiles against an ontology.

Script: scripts/semtools_cli.py

Purpose:
    Command-line interface over the ProfileManager. Reads a tab-separated
    profiles file (id<TAB>term<sep>term...), applies the requested
    operations and writes the resulting profiles.

Usage:
    python scripts/semtools_cli.py -O hp.obo -i profiles.tsv -o cleaned.tsv -c -r out/
    python scripts/semtools_cli.py -O hp.obo -i profiles.tsv -o out.tsv -e -U HP:0000001
    python scripts/semtools_cli.py -O hp.obo -i profiles.tsv -o out.tsv -s -I
    python scripts/semtools_cli.py -O hp.obo -i names.tsv -o out.tsv -t codes -u untranslated.tsv

Dependencies:
    - argparse: CLI argument parsing
    - semtools.ontology: Ontology, read_json
    - semtools.config: settings (--config)

Input:
    - Ontology file (.obo, .owl) or JSON engine state
    - Profiles file

Output:
    - Processed profiles file (id<TAB>term|term...)
    - Optional: <input>_excluded_patients, <input>_semantic_similarity,
      <input>_IC_onto_freq, untranslated terms file

Called by:
    - User via command line

Version: 1.0.0
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from semtools.config import get_settings_manager
from semtools.ontology import Ontology, read_json

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

Profiles = Dict[str, List[str]]


# =============================================================================
# File Helpers
# =============================================================================
def load_profiles_file(path: Path, separator: str) -> Profiles:
    """Read id<TAB>term<sep>term... rows, keeping file order"""
    profiles: Profiles = {}
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.rstrip("\n")
            if not line:
                continue
            fields = line.split("\t")
            terms = fields[1].split(separator) if len(fields) > 1 and fields[1] else []
            profiles.setdefault(fields[0], []).extend(terms)
    return profiles


def write_rows(path: Path, rows: List[List[object]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for row in rows:
            f.write("\t".join(str(field) for field in row) + "\n")


def load_ontology(path: str) -> Ontology:
    if path.endswith(".json"):
        return read_json(path, build=False)
    return Ontology.from_file(path)


# =============================================================================
# Operations
# =============================================================================
def translate_profiles(
    ontology: Ontology,
    profiles: Profiles,
    to_names: bool,
) -> Tuple[Profiles, Profiles]:
    """
    Translate every profile

    Args:
        to_names: True translates IDs to names, False names to IDs

    Returns:
        (translated profiles, untranslated terms per profile)
    """
    translated: Profiles = {}
    not_translated: Profiles = {}
    for profile_id, terms in profiles.items():
        if to_names:
            translation, untranslated = ontology.translate_ids(terms)
        else:
            translation, untranslated = ontology.translate_names(terms)
        translated[profile_id] = translation
        if untranslated:
            not_translated[profile_id] = untranslated
    return translated, not_translated


def clean_profiles(ontology: Ontology, term_filter: Optional[str]) -> List[str]:
    """Hard clean stored profiles, dropping the ones left empty"""
    manager = ontology.profiles
    removed = []
    for profile_id, terms in list(manager.profiles.items()):
        cleaned = manager.clean_profile_hard(terms, term_filter=term_filter)
        if cleaned:
            manager.profiles[profile_id] = cleaned
        else:
            del manager.profiles[profile_id]
            removed.append(profile_id)
    return removed


def consecutive_similarities(ontology: Ontology) -> List[List[object]]:
    """Similarity of each stored profile with the next one"""
    profile_ids = list(ontology.profiles.profiles)
    rows = []
    for current_id, next_id in zip(profile_ids, profile_ids[1:]):
        similarity = ontology.compare(
            ontology.profiles.profiles[current_id],
            ontology.profiles.profiles[next_id],
        )
        rows.append([current_id, next_id, similarity])
    return rows


# =============================================================================
# CLI
# =============================================================================
def parse_args() -> argparse.Namespace:
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(
        description="Process term profiles against an ontology",
    )
    parser.add_argument("-i", "--input-file", type=str, required=True, help="Filepath of profile data")
    parser.add_argument("-o", "--output-file", type=str, required=True, help="Output filepath")
    parser.add_argument("-O", "--ontology-file", type=str, required=True, help="Path to ontology file")
    parser.add_argument("-I", "--ic", action="store_true", help="Write structural and observed IC per profile")
    parser.add_argument(
        "-T", "--term-filter",
        type=str,
        default=None,
        help="Keep only descendants of this term when cleaning profiles",
    )
    parser.add_argument(
        "-t", "--translate",
        type=str,
        choices=["names", "codes"],
        default=None,
        help="Translate to 'names' or to 'codes'",
    )
    parser.add_argument("-s", "--similarity", action="store_true", help="Similarity between consecutive profiles")
    parser.add_argument(
        "-c", "--clean-profiles",
        action="store_true",
        help="Remove ancestors, alternatives and obsolete terms from profiles",
    )
    parser.add_argument("-r", "--removed-path", type=str, default=None, help="Directory for removed profiles file")
    parser.add_argument("-u", "--untranslated-path", type=str, default=None, help="Path for untranslated terms file")
    parser.add_argument("-k", "--keyword", type=str, default=None, help="Regex used to select xref terms")
    parser.add_argument("-e", "--expand-profiles", action="store_true", help="Expand profiles adding ancestors")
    parser.add_argument(
        "-U", "--unwanted-terms",
        type=str,
        default="",
        help="Comma separated terms excluded from profile expansion",
    )
    parser.add_argument("-S", "--separator", type=str, default=",", help="Separator used for the profile terms")
    parser.add_argument("--config", type=str, default=None, help="YAML settings file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def main() -> int:
    """Main entry point"""
    args = parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    if args.config:
        get_settings_manager().load_from_yaml(args.config)

    input_path = Path(args.input_file)
    output_path = Path(args.output_file)
    output_dir = output_path.parent
    untranslated_path = Path(args.untranslated_path) if args.untranslated_path else (
        output_dir / f"{input_path.stem}_untranslated"
    )

    ontology = load_ontology(args.ontology_file)
    if args.keyword:
        ontology.calc_dictionary("xref", select_regex=f"({args.keyword})", store_tag="IDs", multiterm=True)

    raw_profiles = load_profiles_file(input_path, args.separator)
    if args.translate == "codes":
        raw_profiles, not_translated = translate_profiles(ontology, raw_profiles, to_names=False)
        if not_translated:
            write_rows(untranslated_path, [[pid, ";".join(t)] for pid, t in not_translated.items()])
    ontology.profiles.load_profiles(raw_profiles, calc_metadata=False, substitute=True)

    if args.clean_profiles:
        removed = clean_profiles(ontology, args.term_filter)
        if removed:
            removed_dir = Path(args.removed_path) if args.removed_path else output_dir
            write_rows(removed_dir / f"{input_path.stem}_excluded_patients", [[pid] for pid in removed])
            logger.info(f"{len(removed)} profiles removed after cleaning")

    if args.expand_profiles:
        unwanted = [term for term in args.unwanted_terms.split(",") if term]
        ontology.profiles.expand_profiles("parental", unwanted_terms=unwanted, calc_metadata=False)

    if args.similarity:
        write_rows(output_dir / f"{input_path.stem}_semantic_similarity", consecutive_similarities(ontology))

    if args.ic:
        ontology.profiles.add_observed_terms_from_profiles(reset=True)
        by_ontology, by_freq = ontology.profiles.get_profiles_resnik_dual_ics()
        write_rows(
            output_dir / f"{input_path.stem}_IC_onto_freq",
            [[pid, by_ontology[pid], by_freq[pid]] for pid in ontology.profiles.profiles],
        )

    output_profiles = ontology.profiles.profiles
    if args.translate == "names":
        output_profiles, not_translated = translate_profiles(ontology, output_profiles, to_names=True)
        if not_translated:
            write_rows(untranslated_path, [[pid, ";".join(t)] for pid, t in not_translated.items()])

    write_rows(output_path, [[pid, "|".join(terms)] for pid, terms in output_profiles.items()])
    logger.info(f"{len(output_profiles)} profiles written to {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
