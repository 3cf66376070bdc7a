"""
services/export_service.py
---------------------------
Generates downloadable exports of the active collection:
pretty-printed JSON (re-importable), plus CSV and Excel tables.
"""

import io

import pandas as pd

from models.datasets import get_spec
from services.admin_service import AdminWorkspace
from utils.logger import get_logger

logger = get_logger(__name__)


class ExportService:
    """Builds export files from a workspace's in-memory collections."""

    def __init__(self, workspace: AdminWorkspace):
        self.workspace = workspace

    @staticmethod
    def filename(dataset: str, extension: str) -> str:
        return f"zemora-{get_spec(dataset).name}.{extension}"

    def export_json(self, dataset: str) -> io.BytesIO:
        """
        Export a collection as a JSON array, indented by two spaces.
        Importing the file back yields the same collection, ids included.
        """
        buffer = io.BytesIO(self.workspace.export_json(dataset).encode("utf-8"))
        logger.info(f"Exported {len(self.workspace.repository(dataset))} {dataset} as JSON")
        return buffer

    def _frame(self, dataset: str) -> pd.DataFrame:
        rows = []
        for record in self.workspace.repository(dataset).to_json():
            rows.append({
                key: ", ".join(str(v) for v in value) if isinstance(value, list) else value
                for key, value in record.items()
            })
        return pd.DataFrame(rows)

    def export_csv(self, dataset: str) -> io.BytesIO:
        """Export a collection as CSV (list fields joined with ', ')."""
        df = self._frame(dataset)
        buffer = io.BytesIO()
        df.to_csv(buffer, index=False, encoding="utf-8-sig")
        buffer.seek(0)
        logger.info(f"Exported {len(df)} {dataset} as CSV")
        return buffer

    def export_excel(self, dataset: str) -> io.BytesIO:
        """Export a collection as an Excel (.xlsx) workbook, plus a per-category sheet when it has categories."""
        df = self._frame(dataset)
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=dataset, index=False)

            if not df.empty and "category" in df.columns:
                summary = df.groupby("category").size().reset_index()
                summary.columns = ["category", "count"]
                summary.to_excel(writer, sheet_name="categories", index=False)

        buffer.seek(0)
        logger.info(f"Exported {len(df)} {dataset} as Excel")
        return buffer
