"""
Health Check Router
Liveness plus connectivity checks for DynamoDB and S3
"""
import logging
from datetime import datetime

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter

from app.core.config import settings
from app.db import dynamo

router = APIRouter()
logger = logging.getLogger(__name__)

TABLES = {
    "users": dynamo.users_table,
    "budgets": dynamo.budgets_table,
    "budget_periods": dynamo.budget_periods_table,
    "transactions": dynamo.transactions_table,
    "debts": dynamo.debts_table,
    "debt_payments": dynamo.debt_payments_table,
}


@router.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns API status.
    """
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/status")
def aws_services_status():
    """
    Check connectivity of every DynamoDB table and the reports bucket.
    """
    status = {
        "timestamp": datetime.utcnow().isoformat(),
        "services": {}
    }

    dynamodb_status = {"connected": False, "region": settings.DYNAMO_REGION, "tables": {}}
    for name, table in TABLES.items():
        try:
            table.scan(Limit=1)
            dynamodb_status["tables"][name] = {"name": table.name, "status": "accessible"}
        except (ClientError, BotoCoreError) as e:
            logger.error(f"DynamoDB check failed for {table.name}: {str(e)}")
            dynamodb_status["tables"][name] = {"name": table.name, "status": "error", "error": str(e)}
    dynamodb_status["connected"] = all(
        table["status"] == "accessible" for table in dynamodb_status["tables"].values()
    )
    status["services"]["dynamodb"] = dynamodb_status

    s3_status = {
        "connected": False,
        "bucket": settings.S3_BUCKET_NAME,
        "region": settings.S3_REGION,
        "error": None
    }
    try:
        s3_client = boto3.client("s3", region_name=settings.S3_REGION)
        s3_client.head_bucket(Bucket=settings.S3_BUCKET_NAME)
        s3_status["connected"] = True
        s3_status["status"] = "accessible"
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', 'Unknown')
        s3_status["error"] = f"{error_code}: {str(e)}"
        s3_status["status"] = "error"
        logger.error(f"S3 check failed: {str(e)}")
    except BotoCoreError as e:
        s3_status["error"] = str(e)
        s3_status["status"] = "error"
        logger.error(f"S3 check failed: {str(e)}")
    status["services"]["s3"] = s3_status

    all_connected = all(
        service.get("connected", False)
        for service in status["services"].values()
    )
    status["overall_status"] = "healthy" if all_connected else "degraded"

    return status
