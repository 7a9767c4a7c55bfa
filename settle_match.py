"""
Settle a match from the command line.

Usage:
    python settle_match.py <match_id> <result_a> <result_b>
    python settle_match.py <match_id> --resume
"""

import argparse
import sys

from matchday.database import SessionLocal, init_db
from matchday.errors import MatchdayError, PartialSettlementError
from matchday.logging_config import setup_logging
from matchday.scoring import format_score, points_description
from matchday.settlement import resume_settlement, settle_match


def print_report(report):
    print("\n" + "=" * 60)
    print(f"{report['team_a']} {format_score(report['result_a'], report['result_b'])} {report['team_b']}")
    print(f"Season {report['season_number']}")
    print("=" * 60)

    if not report['lines']:
        print("No predictions settled.")
        return

    print(f"{'Player':<20} {'Prediction':>10} {'Points':>8}  Result")
    print("-" * 60)
    for line in report['lines']:
        prediction = format_score(line['prediction_a'], line['prediction_b'])
        print(f"{line['display_name']:<20} {prediction:>10} {line['points']:>8}  {points_description(line['points'])}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Enter a final score and award points")
    parser.add_argument("match_id", type=int)
    parser.add_argument("result_a", type=int, nargs="?")
    parser.add_argument("result_b", type=int, nargs="?")
    parser.add_argument("--resume", action="store_true", help="finish a partially failed settlement")
    args = parser.parse_args(argv)

    if not args.resume and (args.result_a is None or args.result_b is None):
        parser.error("result_a and result_b are required unless --resume is given")

    setup_logging()
    init_db()

    db = SessionLocal()
    try:
        if args.resume:
            report = resume_settlement(db, args.match_id)
        else:
            report = settle_match(db, args.match_id, args.result_a, args.result_b)
        print_report(report)
        return 0
    except PartialSettlementError as exc:
        print(f"\n{exc}")
        for failure in exc.failed:
            print(f"  prediction {failure['prediction_id']} (user {failure['user_id']}): {failure['error']}")
        print(f"\nRe-run with: python settle_match.py {args.match_id} --resume")
        return 2
    except MatchdayError as exc:
        print(f"Error: {exc}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
