from __future__ import annotations

import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.profile_store import get_profile_store  # noqa: E402
from app.schemas.profile import UserProfile  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or update a user profile for local ATS scoring.")
    parser.add_argument("user_id", help="Profile id used by /v1/users/{user_id}/ats-score")
    parser.add_argument("--resume-url", required=True, help="Direct URL to the uploaded resume file")
    parser.add_argument("--fullname", default="")
    parser.add_argument("--email", default="")
    parser.add_argument("--phone", default="")
    parser.add_argument("--bio", default="")
    parser.add_argument("--skills", default="", help="Comma-separated skills")
    args = parser.parse_args()

    store = get_profile_store()
    existing = store.get_profile(args.user_id)
    profile = UserProfile(
        user_id=args.user_id,
        fullname=args.fullname or (existing.fullname if existing else ""),
        email=args.email or (existing.email if existing else ""),
        phone_number=args.phone or (existing.phone_number if existing else ""),
        bio=args.bio or (existing.bio if existing else ""),
        skills=args.skills or (existing.skills if existing else []),
        resume_url=args.resume_url,
        resume_original_name=Path(args.resume_url.split("?", 1)[0]).name or None,
        ats_ai=existing.ats_ai if existing else None,
    )
    store.save_profile(profile)
    print(f"Saved profile '{profile.user_id}' with resume {profile.resume_url}")


if __name__ == "__main__":
    main()
