import csv
import io
import logging
from typing import Dict, List, Optional

import boto3
from botocore.exceptions import ClientError
from fpdf import FPDF

from app.core.config import settings

logger = logging.getLogger(__name__)

# Default AWS credential chain (environment variables, credentials file or IAM role)
s3 = boto3.client("s3", region_name=settings.S3_REGION)

HISTORY_COLUMNS = [
    "period_label",
    "period_start",
    "period_end",
    "base_amount",
    "rollover_amount",
    "allocated_amount",
    "spent_amount",
    "status",
]


def _money(value) -> str:
    return f"{float(value or 0):,.2f}"


def render_budget_history_pdf(budget: Dict, periods: List[Dict]) -> bytes:
    currency = budget.get("currency", settings.DEFAULT_CURRENCY)
    pdf = FPDF()
    pdf.add_page()
    pdf.set_font("Helvetica", "B", 16)
    pdf.cell(0, 10, f"Budget History - {budget.get('name', '')}", new_x="LMARGIN", new_y="NEXT")

    pdf.set_font("Helvetica", "", 12)
    pdf.cell(0, 8, f"Period: {budget.get('period')}  |  Base amount: {currency} {_money(budget.get('amount'))}",
             new_x="LMARGIN", new_y="NEXT")
    pdf.cell(0, 8, f"Rollover: {budget.get('rollover_strategy', 'none')}", new_x="LMARGIN", new_y="NEXT")
    pdf.ln(5)

    pdf.set_font("Helvetica", "B", 11)
    for header, width in (("Period", 60), ("Allocated", 35), ("Spent", 35), ("Rollover", 30), ("Status", 30)):
        pdf.cell(width, 8, header, border=1)
    pdf.ln()

    pdf.set_font("Helvetica", "", 10)
    if not periods:
        pdf.cell(0, 8, "No periods recorded", new_x="LMARGIN", new_y="NEXT")
    for period in periods:
        pdf.cell(60, 8, str(period.get("period_label", "")), border=1)
        pdf.cell(35, 8, _money(period.get("allocated_amount")), border=1)
        pdf.cell(35, 8, _money(period.get("spent_amount")), border=1)
        pdf.cell(30, 8, _money(period.get("rollover_amount")), border=1)
        pdf.cell(30, 8, str(period.get("status", "")), border=1)
        pdf.ln()

    return bytes(pdf.output())


def render_budget_history_csv(periods: List[Dict]) -> str:
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=HISTORY_COLUMNS, extrasaction="ignore")
    writer.writeheader()
    for period in periods:
        writer.writerow({column: period.get(column, "") for column in HISTORY_COLUMNS})
    return output.getvalue()


def _upload(body: bytes, s3_key: str, content_type: str) -> Optional[str]:
    try:
        s3.upload_fileobj(io.BytesIO(body), settings.S3_BUCKET_NAME, s3_key, ExtraArgs={"ContentType": content_type})
        return f"https://{settings.S3_BUCKET_NAME}.s3.{settings.S3_REGION}.amazonaws.com/{s3_key}"
    except ClientError as e:
        logger.error(f"Failed to upload {s3_key}: {e}")
        return None


def generate_and_upload_budget_history_pdf(user_id: str, budget: Dict, periods: List[Dict], report_id: str):
    return _upload(
        render_budget_history_pdf(budget, periods),
        f"reports/{user_id}/{report_id}.pdf",
        "application/pdf",
    )


def generate_and_upload_budget_history_csv(user_id: str, periods: List[Dict], report_id: str):
    return _upload(
        render_budget_history_csv(periods).encode(),
        f"reports/{user_id}/{report_id}.csv",
        "text/csv",
    )
