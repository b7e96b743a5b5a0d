import argparse
import sys
from datetime import timedelta
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from marketplace.config import get_settings
from marketplace.core.security import create_access_token


def parse_args():
    parser = argparse.ArgumentParser(
        description="Issue a bearer token for a supplier dashboard session."
    )
    parser.add_argument("--supplier-id", type=int, required=True, help="Supplier id to embed.")
    parser.add_argument(
        "--minutes",
        type=int,
        default=None,
        help="Token lifetime in minutes (default: JWT_EXPIRATION_MINUTES).",
    )
    return parser.parse_args()


def main():
    args = parse_args()
    if not get_settings().JWT_SECRET:
        print("JWT_SECRET is not set; cannot sign tokens.", file=sys.stderr)
        sys.exit(1)

    expires = timedelta(minutes=args.minutes) if args.minutes else None
    print(create_access_token(args.supplier_id, expires_delta=expires))


if __name__ == "__main__":
    main()
