"""Log in against a running backend and open the landing dashboard.

Prints the screen state and a short summary of what the dashboard loaded, so
the login, guard and fetch paths can be checked end to end.
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.append(str(REPO_ROOT))

from mobile.app.api.client import BackendApiClient  # type: ignore[import]
from mobile.app.dependencies import build_app_context  # type: ignore[import]
from mobile.app.errors import ClientError  # type: ignore[import]
from mobile.app.main import MobileApp  # type: ignore[import]
from mobile.app.navigation import Navigator  # type: ignore[import]


def _parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Smoke-test the client core against a backend")
    p.add_argument("username")
    p.add_argument("password")
    p.add_argument("--base-url", default=None, help="Backend base URL (default: API_BASE_URL)")
    return p.parse_args()


async def _run(args: argparse.Namespace) -> int:
    api = BackendApiClient(base_url=args.base_url)
    app = MobileApp(build_app_context(api=api, navigator=Navigator()))
    try:
        controller = await app.login(args.username, args.password)
    except ClientError as exc:
        print("login failed:", exc)
        return 1
    finally:
        await api.aclose()

    print("screen", app.current_screen.value, "state", controller.state.value)
    if controller.error:
        print("error", controller.error)
    for name in ("violations", "slips", "student_violations", "student_slips"):
        items = getattr(controller, name, None)
        if items is not None:
            print(name, len(items))
    return 0


def main() -> int:
    return asyncio.run(_run(_parse_args()))


if __name__ == "__main__":
    raise SystemExit(main())
