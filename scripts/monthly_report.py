from __future__ import annotations

import argparse
import json

from assmatpaie import crud
from assmatpaie.calculations import overtime_range
from assmatpaie.config import configure_logging, settings
from assmatpaie.db import session_scope
from assmatpaie.summary import parse_month_param, summarize_month

LABELS = {
    "expected_monthly_hours": "Heures mensualisées",
    "hours_done": "Heures réalisées",
    "complementary_hours_month": "Heures complémentaires",
    "overtime_hours_month": "Heures majorées",
    "brut_base": "Brut base",
    "brut_complementary": "Brut complémentaire",
    "brut_overtime": "Brut majoration",
    "prime_mensuelle": "Prime précarité (mois)",
    "total_brut": "Total brut",
    "net": "Net",
    "meal_indemnity": "Indemnités repas",
    "maintenance_indemnity": "Indemnités entretien",
    "total_a_payer": "Total à payer",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Print the monthly payroll summary of a contract."
    )
    parser.add_argument("--contract-id", type=int, required=True)
    parser.add_argument(
        "--month",
        default=None,
        help="Month as YYYY-MM (default: current month).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Dump the full summary as JSON instead of the rounded table.",
    )
    parser.add_argument("--log-level", default=None)
    return parser


def main() -> int:
    args = build_parser().parse_args()
    configure_logging(args.log_level)

    year, month = parse_month_param(args.month)
    span = overtime_range(year, month)

    with session_scope() as db:
        contract = crud.get_contract(db, args.contract_id)
        if not contract:
            raise SystemExit(f"Contract {args.contract_id} not found")
        app_settings = crud.get_or_create_app_settings(db)
        entries = crud.list_time_entries(db, contract.id, span.start, span.end)
        summary = summarize_month(
            contract,
            entries,
            year,
            month,
            net_coefficient=app_settings.net_coefficient,
            weekly_overtime_threshold=settings.weekly_overtime_threshold,
        )

    if args.json:
        print(json.dumps(summary.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return 0

    print(f"{summary.contract.child_name} - {summary.month}")
    for key, value in summary.rounded.model_dump().items():
        print(f"  {LABELS[key]:<26} {value:>10.2f}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
