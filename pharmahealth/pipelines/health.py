import logging
from datetime import date
from typing import Optional
import pandas as pd

from pharmahealth import data_handler, settings, utils
from pharmahealth.classifier import aggregate, aggregate_by_facility, derive_alerts
from pharmahealth.insights import InsightGenerator, RuleBasedInsights
from pharmahealth.pipeline import DataPipeline
from pharmahealth.records import parse_records
from pharmahealth.schemas import HealthReport, StockStatus
from pharmahealth.views import summarize_kpis, to_frame

logger = logging.getLogger(__name__)


class HealthReportPipeline(DataPipeline):
    def __init__(
        self,
        as_of: Optional[date] = None,
        expiry_horizon_days: Optional[int] = None,
        insight_generator: Optional[InsightGenerator] = None,
        test_mode: bool = False,
    ):
        super().__init__("inventory_health", test_mode=test_mode)
        # The clock is read once, here; everything downstream gets it injected.
        self.as_of = as_of or date.today()
        self.expiry_horizon_days = (
            settings.EXPIRY_HORIZON_DAYS if expiry_horizon_days is None else expiry_horizon_days
        )
        self.insight_generator = insight_generator or RuleBasedInsights(
            self.as_of, self.expiry_horizon_days
        )
        self.snapshot_date: Optional[date] = None
        self.inventory_df: Optional[pd.DataFrame] = None

    def extract(self) -> pd.DataFrame | None:
        logger.info("--- Starting Inventory Health Process ---")

        found = utils.find_latest_report(settings.INPUT_DIR, settings.INVENTORY_FILENAME_PREFIX)
        if not found:
            logger.error(
                f"  > ERROR: No snapshot matching '{settings.INVENTORY_FILENAME_PREFIX}*.csv'"
                f" in {settings.INPUT_DIR}."
            )
            self.status_summary["snapshot"] = None
            return None

        path, snapshot_date = found
        logger.info(f"  > Found snapshot: {path.name} ({snapshot_date})")
        if snapshot_date > self.as_of:
            logger.warning(f"  > Snapshot is dated after the report date {self.as_of}.")

        self.snapshot_date = snapshot_date
        self.status_summary["snapshot"] = path.name
        self.status_summary["snapshot_date"] = snapshot_date.isoformat()
        return utils.load_csv(path)

    def transform(self, df: pd.DataFrame) -> HealthReport | None:
        logger.info("\n--- Validating Records ---")
        items, record_faults = parse_records(df.to_dict("records"))
        if not items:
            # Still reported, so the rejections reach the outputs and the webhook
            logger.warning("⚠️ No valid inventory records in snapshot.")

        logger.info("\n--- Classifying Inventory ---")
        summary = aggregate(items)
        for status in StockStatus:
            logger.info(
                f"{status.value}: {summary.counts[status]} ({summary.percentages[status]}%)"
            )

        run = derive_alerts(items, self.as_of, self.expiry_horizon_days)
        faults = record_faults + run.faults
        if faults:
            logger.warning(f"⚠️ {len(faults)} records need attention:")
            for fault in faults:
                logger.warning(f"  > [{fault.tag}] {fault.item_id or '<no id>'}: {fault.detail}")

        report = HealthReport(
            as_of=self.as_of,
            snapshot_date=self.snapshot_date,
            summary=summary,
            by_facility=aggregate_by_facility(items),
            kpis=summarize_kpis(items, self.as_of, self.expiry_horizon_days),
            alerts=run.alerts,
            faults=faults,
            insights=self.insight_generator(items),
        )
        self.inventory_df = to_frame(items)

        self.status_summary["items"] = len(items)
        self.status_summary["rejected"] = len(record_faults)
        self.status_summary["alerts"] = len(run.alerts)
        return report

    def load(self, report: HealthReport):
        self.log_status_summary()

        data_handler.save_outputs(self.inventory_df, report)

        if not self.test_mode:
            data_handler.post_to_webhook(
                report=report,
                metadata=self.status_summary,
                report_type=self.report_type,
            )
        else:
            logger.info("🧪 Test Mode: Skipping webhook post.")
