from __future__ import annotations

import argparse
import os
import sys
import time
from pathlib import Path
from typing import Any, Dict

import jwt  # type: ignore[import]

# Ensure repository root is on sys.path so `import mobile.*` works when running this file directly
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.append(str(REPO_ROOT))

# Provide a default signing secret for local testing if not set
os.environ.setdefault("APP_JWT_SECRET", "dev-secret")

from mobile.app import config
from mobile.app.auth.roles import Role, subject_key_for


def _parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Generate a signed JWT for exercising the client locally")
    p.add_argument("--role", default="student", choices=["student", "employee", "guest"], help="Authority to grant")
    p.add_argument("--subject", default=None, help="Student/employee number or guest id (default: <role>-0001)")
    p.add_argument("--username", default=None, help="Subject claim (defaults to the subject id)")
    p.add_argument("--ttl", type=int, default=3600, help="Token TTL in seconds (default: 3600)")
    p.add_argument("--no-exp", action="store_true", help="Omit the exp claim")
    return p.parse_args()


def main() -> int:
    args = _parse_args()

    secret = config.APP_JWT_SECRET or os.environ.get("APP_JWT_SECRET")
    if not secret:
        print("ERROR: APP_JWT_SECRET must be set in env or mobile.app.config")
        return 1

    role = Role(args.role.upper())
    subject_id = args.subject or f"{args.role}-0001"
    issued_at = int(time.time())

    payload: Dict[str, Any] = {
        "sub": args.username or subject_id,
        "authorities": [{"authority": role.tag}],
        "iat": issued_at,
        subject_key_for(role): subject_id,
    }
    if not args.no_exp:
        payload["exp"] = issued_at + max(1, int(args.ttl))

    token = jwt.encode(payload, secret, algorithm=config.APP_JWT_ALGORITHM)
    print(token)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
