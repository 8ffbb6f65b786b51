"""
Cron Router
Batch jobs for external schedulers (Vercel cron, EventBridge, crontab + curl).
Requests must carry ``Authorization: Bearer <CRON_SECRET>``.
"""
import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException

from app.core.security import verify_cron_secret
from app.utils.budget_periods import run_budget_resets
from app.utils.debt_ledger import check_debt_reminders

router = APIRouter(dependencies=[Depends(verify_cron_secret)])
logger = logging.getLogger(__name__)


@router.api_route("/budget-reset", methods=["GET", "POST"])
def budget_reset() -> Dict:
    try:
        return run_budget_resets()
    except Exception as e:
        logger.error(f"[Budget Reset] Fatal error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Budget reset failed: {str(e)}")


@router.api_route("/check-reminders", methods=["GET", "POST"])
def check_reminders() -> Dict:
    try:
        return check_debt_reminders()
    except Exception as e:
        logger.error(f"[Reminders] Fatal error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Reminder check failed: {str(e)}")
