#!/usr/bin/env python3
"""
Review pending gym matches from the command line.

Lists matches the matching engine queued for review (score 70-89) and
approves or rejects them. Approving links both source gyms under one
master gym, reusing an existing master gym where either side has one.

Usage:
    # List pending matches (oldest first)
    python scripts/review_pending_matches.py list

    # List already approved matches
    python scripts/review_pending_matches.py list --status approved --limit 20

    # Approve / reject one match
    python scripts/review_pending_matches.py approve <match-id> --reviewer alice
    python scripts/review_pending_matches.py reject <match-id> --reviewer alice

    # Detach a source gym from a master gym
    python scripts/review_pending_matches.py unlink <master-gym-id> JJWL#5713
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mattrack.config import settings
from mattrack.db.session import get_session
from mattrack.gyms.review import PendingMatchReviewService

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Review pending gym matches.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List matches by status.")
    list_parser.add_argument(
        "--status",
        default="pending",
        choices=["pending", "approved", "rejected"],
        help="Match status to list (default: pending).",
    )
    list_parser.add_argument("--limit", type=int, default=50, help="Maximum matches to show.")

    for action in ("approve", "reject"):
        action_parser = subparsers.add_parser(action, help=f"{action.capitalize()} a pending match.")
        action_parser.add_argument("match_id", help="Pending match ID.")
        action_parser.add_argument("--reviewer", default="admin", help="Reviewer recorded on the match.")

    unlink_parser = subparsers.add_parser("unlink", help="Detach a source gym from a master gym.")
    unlink_parser.add_argument("master_gym_id", help="Master gym ID.")
    unlink_parser.add_argument("source_key", help="Source gym key, e.g. JJWL#5713.")

    return parser.parse_args()


def main() -> int:
    args = parse_args()

    with get_session() as session:
        service = PendingMatchReviewService(session)

        try:
            if args.command == "list":
                matches = service.list_pending_matches(args.status, args.limit)
                if not matches:
                    print(f"No {args.status} matches.")
                for match in matches:
                    signals = match.signals or {}
                    print(
                        f"{match.id}  {match.confidence:5.1f}  "
                        f"{match.source_gym_1_name} ({match.source_gym_1_id})  ~  "
                        f"{match.source_gym_2_name} ({match.source_gym_2_id})  "
                        f"name={signals.get('name_similarity')} "
                        f"city=+{signals.get('city_boost', 0)} "
                        f"affiliation=+{signals.get('affiliation_boost', 0)}"
                    )

            elif args.command == "approve":
                master_gym_id = service.approve(args.match_id, args.reviewer)
                print(f"Approved {args.match_id}: linked to master gym {master_gym_id}")

            elif args.command == "reject":
                service.reject(args.match_id, args.reviewer)
                print(f"Rejected {args.match_id}")

            elif args.command == "unlink":
                service.unlink_source_gym(args.master_gym_id, args.source_key)
                print(f"Unlinked {args.source_key} from {args.master_gym_id}")

        except (LookupError, ValueError) as e:
            logger.error("%s", e)
            return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
