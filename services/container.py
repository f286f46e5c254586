from dataclasses import dataclass
from typing import Optional

from db.store import RestaurantStore, build_store
from services.approval_workflow import ApprovalWorkflow
from services.credential_service import CredentialIssuer
from services.dashboard_gate import DashboardGate
from services.notifications import RestaurantNotifier
from services.restaurant_service import RegistrationIntake, RestaurantService
from services.user_service import AccountService
from services.visibility import VisibilityService
from settings.config import Settings
from utils.email import EmailSender, build_email_sender


@dataclass
class ServiceContainer:
    store: RestaurantStore
    notifier: RestaurantNotifier
    workflow: ApprovalWorkflow
    intake: RegistrationIntake
    restaurants: RestaurantService
    visibility: VisibilityService
    gate: DashboardGate
    accounts: AccountService


def build_container(settings: Settings, store: Optional[RestaurantStore] = None,
                    sender: Optional[EmailSender] = None) -> ServiceContainer:
    store = store or build_store(settings)
    notifier = RestaurantNotifier(sender or build_email_sender(settings), settings.LOGIN_URL)
    issuer = CredentialIssuer(store, password_length=settings.TEMP_PASSWORD_LENGTH)
    return ServiceContainer(
        store=store,
        notifier=notifier,
        workflow=ApprovalWorkflow(store, issuer, notifier),
        intake=RegistrationIntake(store, notifier),
        restaurants=RestaurantService(store),
        visibility=VisibilityService(store, settings.TIMEZONE),
        gate=DashboardGate(store),
        accounts=AccountService(store),
    )
