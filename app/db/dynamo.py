import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from app.core.config import settings

logger = logging.getLogger(__name__)

# Initialize DynamoDB resource
dynamodb = boto3.resource("dynamodb", region_name=settings.DYNAMO_REGION)

# Get table references
users_table = dynamodb.Table(settings.DYNAMO_USERS_TABLE)
budgets_table = dynamodb.Table(settings.DYNAMO_BUDGETS_TABLE)
budget_periods_table = dynamodb.Table(settings.DYNAMO_BUDGET_PERIODS_TABLE)
transactions_table = dynamodb.Table(settings.DYNAMO_TRANSACTIONS_TABLE)
debts_table = dynamodb.Table(settings.DYNAMO_DEBTS_TABLE)
debt_payments_table = dynamodb.Table(settings.DYNAMO_DEBT_PAYMENTS_TABLE)


def _error_message(e: ClientError) -> str:
    return e.response.get("Error", {}).get("Message", str(e))


def _query_all(table, **kwargs) -> List[dict]:
    """Run a query (or scan when no key condition is given) following pagination."""
    operation = table.query if "KeyConditionExpression" in kwargs else table.scan
    items: List[dict] = []
    while True:
        response = operation(**kwargs)
        items.extend(response.get("Items", []))
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return [_from_dynamo(item) for item in items]
        kwargs["ExclusiveStartKey"] = last_key


def _put_item(table, item: dict, name: str) -> bool:
    try:
        table.put_item(Item=_convert_for_dynamo(item))
        return True
    except ClientError as e:
        logger.error(f"{name} failed: {_error_message(e)}")
        return False


def _get_item(table, key: dict, name: str) -> Optional[dict]:
    try:
        response = table.get_item(Key=key)
        item = response.get("Item")
        return _from_dynamo(item) if item else None
    except ClientError as e:
        logger.error(f"{name} failed: {_error_message(e)}")
        return None


def _delete_item(table, key: dict, name: str) -> bool:
    try:
        response = table.delete_item(Key=key, ReturnValues="ALL_OLD")
        return "Attributes" in response
    except ClientError as e:
        logger.error(f"{name} failed: {_error_message(e)}")
        return False


def _update_item(table, key: dict, updates: dict, name: str) -> Optional[dict]:
    """
    Apply partial updates to an existing item. Returns the updated item or None
    when the item doesn't exist or the write fails.
    """
    if not updates:
        return None

    update_expression_parts = []
    expression_attribute_values = {}
    expression_attribute_names = {}

    for idx, (field_name, value) in enumerate(updates.items()):
        placeholder = f"#f{idx}"
        value_placeholder = f":v{idx}"
        update_expression_parts.append(f"{placeholder} = {value_placeholder}")
        expression_attribute_names[placeholder] = field_name
        expression_attribute_values[value_placeholder] = value

    condition_parts = []
    for idx, key_name in enumerate(key):
        placeholder = f"#k{idx}"
        expression_attribute_names[placeholder] = key_name
        condition_parts.append(f"attribute_exists({placeholder})")

    try:
        response = table.update_item(
            Key=key,
            UpdateExpression="SET " + ", ".join(update_expression_parts),
            ConditionExpression=" AND ".join(condition_parts),
            ExpressionAttributeNames=expression_attribute_names,
            ExpressionAttributeValues=_convert_for_dynamo(expression_attribute_values),
            ReturnValues="ALL_NEW",
        )
        attributes = response.get("Attributes")
        return _from_dynamo(attributes) if attributes else None
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
            return None
        logger.error(f"{name} failed: {_error_message(e)}")
        return None


# --- Budgets -----------------------------------------------------------------

def put_budget(budget_item: dict) -> bool:
    """Insert or replace a budget."""
    return _put_item(budgets_table, budget_item, "put_budget")


def get_budget(user_id: str, budget_id: str) -> Optional[dict]:
    return _get_item(budgets_table, {"user_id": user_id, "budget_id": budget_id}, "get_budget")


def list_budgets(user_id: str) -> List[dict]:
    try:
        budgets = _query_all(budgets_table, KeyConditionExpression=Key("user_id").eq(user_id))
        return sorted(budgets, key=lambda b: b.get("created_at", ""), reverse=True)
    except ClientError as e:
        logger.error(f"list_budgets failed: {_error_message(e)}")
        return []


def update_budget(user_id: str, budget_id: str, updates: dict) -> Optional[dict]:
    return _update_item(budgets_table, {"user_id": user_id, "budget_id": budget_id}, updates, "update_budget")


def delete_budget(user_id: str, budget_id: str) -> bool:
    return _delete_item(budgets_table, {"user_id": user_id, "budget_id": budget_id}, "delete_budget")


def scan_budgets_due_for_reset(today: date) -> List[dict]:
    """Active recurring budgets whose next_reset_date is today or earlier."""
    try:
        return _query_all(
            budgets_table,
            FilterExpression=Attr("is_active").eq(True)
            & Attr("next_reset_date").exists()
            & Attr("next_reset_date").lte(today.isoformat()),
        )
    except ClientError as e:
        logger.error(f"scan_budgets_due_for_reset failed: {_error_message(e)}")
        return []


# --- Budget periods ----------------------------------------------------------

def put_budget_period(period_item: dict) -> bool:
    return _put_item(budget_periods_table, period_item, "put_budget_period")


def list_budget_periods(budget_id: str) -> List[dict]:
    """All periods of a budget, newest first."""
    try:
        response = _query_all(
            budget_periods_table,
            KeyConditionExpression=Key("budget_id").eq(budget_id),
            ScanIndexForward=False,
        )
        return sorted(response, key=lambda p: p["period_id"], reverse=True)
    except ClientError as e:
        logger.error(f"list_budget_periods failed: {_error_message(e)}")
        return []


def get_active_budget_period(budget_id: str) -> Optional[dict]:
    for period in list_budget_periods(budget_id):
        if period.get("status") == "active":
            return period
    return None


def update_budget_period(budget_id: str, period_id: str, updates: dict) -> Optional[dict]:
    return _update_item(
        budget_periods_table,
        {"budget_id": budget_id, "period_id": period_id},
        updates,
        "update_budget_period",
    )


# --- Transactions ------------------------------------------------------------

def put_transaction(transaction_item: dict) -> bool:
    return _put_item(transactions_table, transaction_item, "put_transaction")


def get_transaction(user_id: str, transaction_id: str) -> Optional[dict]:
    return _get_item(
        transactions_table, {"user_id": user_id, "transaction_id": transaction_id}, "get_transaction"
    )


def get_transactions_for_user(
    user_id: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[dict]:
    """
    Query a user's transactions between two dates (inclusive).
    transaction_id is '<YYYY-MM-DD>#<suffix>' so a key range covers the dates.
    """
    condition = Key("user_id").eq(user_id)
    if start and end:
        condition = condition & Key("transaction_id").between(start.isoformat(), f"{end.isoformat()}~")
    elif start:
        condition = condition & Key("transaction_id").gte(start.isoformat())
    elif end:
        condition = condition & Key("transaction_id").lte(f"{end.isoformat()}~")
    try:
        return _query_all(transactions_table, KeyConditionExpression=condition)
    except ClientError as e:
        logger.error(f"get_transactions_for_user failed: {_error_message(e)}")
        return []


def update_transaction(user_id: str, transaction_id: str, updates: dict) -> Optional[dict]:
    return _update_item(
        transactions_table,
        {"user_id": user_id, "transaction_id": transaction_id},
        updates,
        "update_transaction",
    )


def delete_transaction(user_id: str, transaction_id: str) -> bool:
    return _delete_item(
        transactions_table, {"user_id": user_id, "transaction_id": transaction_id}, "delete_transaction"
    )


# --- Debts -------------------------------------------------------------------

def put_debt(debt_item: dict) -> bool:
    return _put_item(debts_table, debt_item, "put_debt")


def get_debt(user_id: str, debt_id: str) -> Optional[dict]:
    return _get_item(debts_table, {"user_id": user_id, "debt_id": debt_id}, "get_debt")


def list_debts(user_id: str, status: Optional[str] = None) -> List[dict]:
    kwargs: Dict[str, Any] = {"KeyConditionExpression": Key("user_id").eq(user_id)}
    if status:
        kwargs["FilterExpression"] = Attr("status").eq(status)
    try:
        debts = _query_all(debts_table, **kwargs)
        return sorted(debts, key=lambda d: d.get("created_at", ""), reverse=True)
    except ClientError as e:
        logger.error(f"list_debts failed: {_error_message(e)}")
        return []


def update_debt(user_id: str, debt_id: str, updates: dict) -> Optional[dict]:
    return _update_item(debts_table, {"user_id": user_id, "debt_id": debt_id}, updates, "update_debt")


def delete_debt(user_id: str, debt_id: str) -> bool:
    return _delete_item(debts_table, {"user_id": user_id, "debt_id": debt_id}, "delete_debt")


def scan_active_debts_due_between(start: date, end: date) -> List[dict]:
    try:
        return _query_all(
            debts_table,
            FilterExpression=Attr("status").eq("active")
            & Attr("next_due_date").between(start.isoformat(), end.isoformat()),
        )
    except ClientError as e:
        logger.error(f"scan_active_debts_due_between failed: {_error_message(e)}")
        return []


# --- Debt payments -----------------------------------------------------------

def put_debt_payment(payment_item: dict) -> bool:
    return _put_item(debt_payments_table, payment_item, "put_debt_payment")


def get_debt_payment(debt_id: str, payment_id: str) -> Optional[dict]:
    return _get_item(debt_payments_table, {"debt_id": debt_id, "payment_id": payment_id}, "get_debt_payment")


def list_debt_payments(debt_id: str) -> List[dict]:
    """All payments recorded against a debt, latest payment date first."""
    try:
        payments = _query_all(debt_payments_table, KeyConditionExpression=Key("debt_id").eq(debt_id))
        return sorted(
            payments,
            key=lambda p: (p.get("payment_date", ""), p.get("created_at", "")),
            reverse=True,
        )
    except ClientError as e:
        logger.error(f"list_debt_payments failed: {_error_message(e)}")
        return []


def update_debt_payment(debt_id: str, payment_id: str, updates: dict) -> Optional[dict]:
    return _update_item(
        debt_payments_table, {"debt_id": debt_id, "payment_id": payment_id}, updates, "update_debt_payment"
    )


def delete_debt_payment(debt_id: str, payment_id: str) -> bool:
    return _delete_item(
        debt_payments_table, {"debt_id": debt_id, "payment_id": payment_id}, "delete_debt_payment"
    )


def delete_debt_payments(debt_id: str) -> bool:
    try:
        with debt_payments_table.batch_writer() as batch:
            for payment in list_debt_payments(debt_id):
                batch.delete_item(Key={"debt_id": debt_id, "payment_id": payment["payment_id"]})
        return True
    except ClientError as e:
        logger.error(f"delete_debt_payments failed: {_error_message(e)}")
        return False


# --- User notification settings ----------------------------------------------

def get_notification_settings(user_id: str) -> Optional[dict]:
    """
    Reminder preferences stored on the user's record.
    Returns dict with email, debt_reminders_enabled, debt_reminder_days_before.
    """
    item = _get_item(users_table, {"user_id": user_id}, "get_notification_settings")
    if not item:
        return None
    return {
        "email": item.get("email"),
        "debt_reminders_enabled": item.get("debt_reminders_enabled", True),
        "debt_reminder_days_before": item.get("debt_reminder_days_before", settings.DEFAULT_DEBT_REMINDER_DAYS),
    }


def save_notification_settings(user_id: str, preferences: dict) -> bool:
    existing = _get_item(users_table, {"user_id": user_id}, "save_notification_settings") or {}
    item = {
        **existing,
        **preferences,
        "user_id": user_id,
        "updated_at": datetime.utcnow().isoformat(),
    }
    return _put_item(users_table, item, "save_notification_settings")


def _convert_for_dynamo(obj: Any):
    """
    Recursively convert floats to Decimal and dates/enums to strings for DynamoDB.
    """
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {k: _convert_for_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_convert_for_dynamo(v) for v in obj]
    return obj


def _from_dynamo(obj: Any):
    """
    Recursively convert Decimal instances back to native Python numeric types.
    """
    if isinstance(obj, list):
        return [_from_dynamo(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _from_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    return obj
