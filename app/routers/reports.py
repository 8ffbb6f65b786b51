import logging
import uuid
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException

from app.core.security import get_current_user_id
from app.db import dynamo
from app.utils import pdf_report
from budget_engine.rollover import ZERO, to_money

router = APIRouter()
logger = logging.getLogger(__name__)


def summarize_history(periods) -> Dict:
    completed = [p for p in periods if p.get("status") == "completed"]
    total_allocated = sum((to_money(p.get("allocated_amount")) for p in completed), ZERO)
    total_spent = sum((to_money(p.get("spent_amount")) for p in completed), ZERO)
    total_rollover = sum((to_money(p.get("rollover_amount")) for p in periods), ZERO)
    return {
        "period_count": len(periods),
        "completed_periods": len(completed),
        "total_allocated": float(total_allocated),
        "total_spent": float(total_spent),
        "total_rollover": float(total_rollover),
        "periods_over_budget": len(
            [p for p in completed if to_money(p.get("spent_amount")) > to_money(p.get("allocated_amount"))]
        ),
    }


@router.get("/budgets/{budget_id}/history")
def budget_history_report(budget_id: str, user_id: str = Depends(get_current_user_id)) -> Dict:
    """
    Summarize every period of a budget, upload PDF and CSV copies to S3 and
    return the summary with download links.
    """
    try:
        logger.info(f"Generating history report for user_id: {user_id}, budget: {budget_id}")

        budget = dynamo.get_budget(user_id, budget_id)
        if not budget:
            raise HTTPException(status_code=404, detail="Budget not found")

        periods = dynamo.list_budget_periods(budget_id)
        summary = summarize_history(periods)
        report_id = f"{budget_id}_{uuid.uuid4().hex[:6]}"

        try:
            pdf_url = pdf_report.generate_and_upload_budget_history_pdf(user_id, budget, periods, report_id)
            logger.info(f"PDF uploaded: {pdf_url}")
        except Exception as e:
            logger.error(f"Error generating PDF: {str(e)}")
            pdf_url = None

        try:
            csv_url = pdf_report.generate_and_upload_budget_history_csv(user_id, periods, report_id)
            logger.info(f"CSV uploaded: {csv_url}")
        except Exception as e:
            logger.error(f"Error generating CSV: {str(e)}")
            csv_url = None

        return {
            "budget_id": budget_id,
            "name": budget.get("name"),
            "summary": summary,
            "periods": periods,
            "pdf_report_url": pdf_url,
            "csv_report_url": csv_url,
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error generating report: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")
