"""Tables exposed to the data explorer, keyed by their public name."""
from dataclasses import dataclass
from sqlalchemy import inspect
from app.modules.activity.models import ActivityLog
from app.modules.admin.models import User, Team
from app.modules.bookings.models import BookingToken
from app.modules.email_templates.models import EmailTemplate
from app.modules.knowledge_base.models import KnowledgeDocument
from app.modules.strategy.models import Objective, KeyResult, KeyResultTask
from app.modules.work_items.models import WorkItem

# never readable through the explorer
HIDDEN_FIELDS = frozenset({"password_hash", "token"})

@dataclass(frozen=True)
class RegisteredTable:
    model: type
    label: str
    description: str

TABLE_REGISTRY: dict[str, RegisteredTable] = {
    "work_items": RegisteredTable(WorkItem, "Work Items", "Tickets and tasks from the operations board"),
    "objectives": RegisteredTable(Objective, "Objectives", "Strategic objectives and company goals"),
    "key_results": RegisteredTable(KeyResult, "Key Results", "Measurable key results tracking objective progress"),
    "key_result_tasks": RegisteredTable(KeyResultTask, "Key Result Tasks", "Actionable tasks supporting key results"),
    "knowledge_documents": RegisteredTable(KnowledgeDocument, "Knowledge Documents", "Knowledge base articles"),
    "activity_logs": RegisteredTable(ActivityLog, "Activity Logs", "Audit trail of user and system actions"),
    "users": RegisteredTable(User, "Users", "People with access to the organization"),
    "teams": RegisteredTable(Team, "Teams", "Groups of users"),
    "email_templates": RegisteredTable(EmailTemplate, "Email Templates", "Reusable email content"),
    "booking_tokens": RegisteredTable(BookingToken, "Booking Tokens", "Customer appointment booking links"),
}

def columns(model: type) -> dict:
    """Attribute name -> Column for every visible mapped column."""
    mapper = inspect(model)
    return {
        attr.key: attr.columns[0]
        for attr in mapper.column_attrs
        if attr.key not in HIDDEN_FIELDS
    }

def field_type(column) -> str:
    try:
        return column.type.python_type.__name__
    except NotImplementedError:
        return column.type.__class__.__name__.lower()

def describe(model: type) -> list[dict]:
    return [
        {
            "field_name": key,
            "field_type": field_type(col),
            "nullable": bool(col.nullable),
            "is_primary_key": bool(col.primary_key),
            "is_foreign_key": bool(col.foreign_keys),
        }
        for key, col in columns(model).items()
    ]
