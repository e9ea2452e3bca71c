import argparse
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from twinber.database import SessionLocal
from twinber.services.seeding import seed_dummy_data
from twinber.survey_loader import get_questions


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed dummy Twinber respondents")
    parser.add_argument("--n-users", type=int, default=100)
    parser.add_argument("--reset", action="store_true")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--clustered", action="store_true")
    parser.add_argument("--include-qa-login", action="store_true")
    parser.add_argument("--qa-password", type=str, default="twinber123")
    args = parser.parse_args()

    with SessionLocal() as db:
        summary = seed_dummy_data(
            db=db,
            questions=get_questions(None),
            n_users=args.n_users,
            reset=args.reset,
            seed=args.seed,
            clustered=args.clustered,
            include_qa_login=args.include_qa_login,
            qa_password=args.qa_password,
        )

    print("Seed completed")
    for k, v in summary.items():
        print(f"- {k}: {v}")


if __name__ == "__main__":
    main()
