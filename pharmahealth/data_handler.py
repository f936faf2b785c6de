import json
import logging
from typing import Any, Optional
import pandas as pd
import requests

from . import settings
from . import utils
from .schemas import AlertEvent, HealthReport

logger = logging.getLogger(__name__)


def alerts_to_frame(alerts: list[AlertEvent]) -> pd.DataFrame:
    columns = [field.alias or name for name, field in AlertEvent.model_fields.items()]
    rows = [alert.model_dump(mode="json", by_alias=True) for alert in alerts]
    return pd.DataFrame(rows, columns=columns)


def save_outputs(
    inventory_df: pd.DataFrame,
    report: HealthReport,
    report_base: Optional[str] = None,
) -> dict[str, Any]:
    """
    Saves the classified inventory and the alert list to CSV and, when
    configured, the whole report to JSON. Filenames carry the report date.
    Returns the written paths keyed by output kind.
    """
    report_base = report_base or settings.REPORT_FILENAME_BASE
    settings.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    date_suffix = utils.get_date_suffix_for_filename(report.as_of)

    inventory_path = settings.OUTPUT_DIR / f"{report_base}_{date_suffix}.csv"
    alerts_path = settings.OUTPUT_DIR / f"{report_base}_alerts_{date_suffix}.csv"
    json_path = settings.OUTPUT_DIR / f"{report_base}_{date_suffix}.json"

    written = {}

    inventory_df.to_csv(inventory_path, index=False)
    logger.info(f"✅ Classified inventory saved to: {inventory_path}")
    written["inventory"] = inventory_path

    alerts_to_frame(report.alerts).to_csv(alerts_path, index=False)
    logger.info(f"✅ {len(report.alerts)} alerts saved to: {alerts_path}")
    written["alerts"] = alerts_path

    if settings.SAVE_JSON_OUTPUT:
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(report.model_dump(mode="json", by_alias=True), f, indent=2)
        logger.info(f"✅ JSON output saved to: {json_path}")
        written["json"] = json_path
    else:
        logger.info("Skipping JSON file save as per configuration.")

    return written


def post_to_webhook(
    report: HealthReport,
    metadata: dict[str, Any],
    report_type: str = "inventory_health",
) -> bool:
    """
    Posts the report and the run metadata to the webhook.
    Returns True when the webhook accepted the payload.
    """
    if not settings.WEBHOOK_URL:
        logger.warning("⚠️ WEBHOOK_URL not set. Skipping webhook post.")
        return False

    logger.info(f"🚀 Posting {report_type} report to webhook.")

    payload = {
        "reportType": report_type,
        "metadata": metadata,
        "reportData": report.model_dump(mode="json", by_alias=True),
    }

    try:
        response = requests.post(
            settings.WEBHOOK_URL, json=payload, timeout=settings.WEBHOOK_TIMEOUT
        )
        response.raise_for_status()
        logger.info("✅ Report successfully posted to webhook.")
        return True
    except requests.exceptions.RequestException as e:
        logger.error(f"❌ Error posting to webhook: {e}")
        return False
