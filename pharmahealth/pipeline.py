import logging
from abc import ABC, abstractmethod
from typing import Any, Optional
import pandas as pd

logger = logging.getLogger(__name__)


class DataPipeline(ABC):
    """
    Abstract base class for report pipelines.
    Follows an Extract -> Transform -> Load (ETL) pattern.
    """

    def __init__(self, report_type: str, test_mode: bool = False):
        self.report_type = report_type
        self.test_mode = test_mode
        # Filled while the pipeline runs: source file, snapshot date, counts...
        self.status_summary: dict[str, Any] = {}

    def run(self) -> Optional[Any]:
        """
        Orchestrates the pipeline execution. Returns the transformed result,
        or None when nothing could be produced.
        """
        logger.info(f"🚀 STEP: {self.report_type.upper()} REPORT")
        logger.info("-" * 30)

        # --- 1. EXTRACT ---
        raw_data = self.extract()
        if raw_data is None or raw_data.empty:
            logger.warning(f"⚠️ No data extracted for {self.report_type}. Nothing to report.")
            return None

        # --- 2. TRANSFORM ---
        result = self.transform(raw_data)
        if result is None:
            logger.error(f"❌ Transformation failed for {self.report_type}.")
            return None

        # --- 3. LOAD ---
        self.load(result)

        logger.info(f"✅ {self.report_type.capitalize()} Pipeline Finished.\n")
        logger.info("=" * 60)
        return result

    @abstractmethod
    def extract(self) -> pd.DataFrame | None:
        """
        Responsible for finding the input file and returning it as a raw DataFrame.
        Should also populate self.status_summary with what it found.
        """
        pass

    @abstractmethod
    def transform(self, df: pd.DataFrame) -> Any | None:
        """
        Responsible for validation and every derived figure.
        Returns the validated result, or None if the data is unusable.
        """
        pass

    @abstractmethod
    def load(self, result: Any):
        """Saves the result to disk and hands it to downstream consumers."""
        pass

    def log_status_summary(self):
        logger.info("\n--- Final Status Summary ---")
        for key, value in self.status_summary.items():
            logger.info(f"{key}: {value if value is not None else 'No data'}")
