"""Recompute stored vote counts from the vote ledger.

Use after manual data edits or to verify that no drift exists; the normal
vote path never needs it.
"""
from __future__ import annotations

import argparse
import sys

from feature_voting.db.session import SessionLocal
from feature_voting.services import FeatureNotFoundError, TransactionRunner, VotingService


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Repair features.vote_count from the votes table")
    parser.add_argument(
        "--feature-id",
        type=int,
        default=None,
        help="Only reconcile this feature (defaults to every feature)",
    )
    args = parser.parse_args(argv)

    voting = VotingService(TransactionRunner(SessionLocal))
    if args.feature_id is not None:
        try:
            results = [voting.reconcile(args.feature_id)]
        except FeatureNotFoundError as exc:
            print(f"[reconcile] ERROR: {exc}", file=sys.stderr)
            sys.exit(1)
    else:
        results = voting.reconcile_all()

    drifted = [result for result in results if result.drifted]
    for result in drifted:
        print(
            f"[reconcile] feature {result.feature_id}: "
            f"{result.stored_count} -> {result.actual_count}"
        )
    print(f"[reconcile] checked {len(results)} features, repaired {len(drifted)}")


if __name__ == "__main__":
    main()
