from app.models.account import Account
from app.models.inspector import Inspector, InspectorTimeslot, InspectorTimeoff
from app.models.client import Client
from app.models.realtor import Realtor, realtor_clients
from app.models.inspection import Inspection
from app.models.document import Document, DocumentAuthorization
from app.models.notification import NotificationOutbox

__all__ = [
    "Account",
    "Inspector",
    "InspectorTimeslot",
    "InspectorTimeoff",
    "Client",
    "Realtor",
    "realtor_clients",
    "Inspection",
    "Document",
    "DocumentAuthorization",
    "NotificationOutbox",
]
