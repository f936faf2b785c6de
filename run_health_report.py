import argparse
from datetime import date

from pharmahealth.logger import setup_logger
from pharmahealth.pipelines.health import HealthReportPipeline


def parse_args():
    parser = argparse.ArgumentParser(description="Build the inventory health report.")
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Report date (YYYY-MM-DD). Defaults to today.",
    )
    parser.add_argument(
        "--horizon",
        type=int,
        default=None,
        help="Expiry alert horizon in days. Defaults to EXPIRY_HORIZON_DAYS.",
    )
    parser.add_argument(
        "--test", action="store_true", help="Write outputs but skip the webhook post."
    )
    return parser.parse_args()


def run_health_report():
    """Entry point: configure logging once, then run the pipeline."""
    args = parse_args()
    pipeline = HealthReportPipeline(
        as_of=args.as_of,
        expiry_horizon_days=args.horizon,
        test_mode=args.test,
    )
    setup_logger(pipeline.report_type)
    pipeline.run()


if __name__ == "__main__":
    run_health_report()
