"""Templated restaurant emails, sent through whichever EmailSender is configured."""
from models.restaurant import Restaurant
from utils.email import EmailMessage, EmailSender
from utils.logger import get_logger

logger = get_logger("Notification_Service")

SUPPORT_EMAIL = "support@frontdash.com"

PENDING_SUBJECT = "Your restaurant registration is pending approval"
APPROVED_SUBJECT = "Your restaurant has been approved - login details inside"


def registration_received_email(restaurant: Restaurant) -> EmailMessage:
    body = f"""Dear {restaurant.name},

Thank you for registering with FrontDash!

We have received your restaurant registration application ({restaurant.application_id}) and it is currently pending admin approval.

What happens next:
- Our team will review your restaurant information and menu details
- This process typically takes 2-3 business days
- You'll receive another email once your account has been approved

Please quote {restaurant.application_id} in any question to {SUPPORT_EMAIL}.

Best regards,
The FrontDash Team"""
    return EmailMessage(to=restaurant.email, subject=PENDING_SUBJECT, body=body)


def approval_email(restaurant: Restaurant, username: str, temporary_password: str, login_url: str) -> EmailMessage:
    body = f"""Dear {restaurant.name},

Great news! Your restaurant account has been approved and you can now access FrontDash!

Your Login Credentials:
Username: {username}
Temporary Password: {temporary_password}

IMPORTANT: Please log in and change your password immediately.

Login URL: {login_url}

Next Steps:
1. Log in using the credentials above
2. Change your temporary password
3. Review your menu and operating hours
4. Start accepting orders!

Best regards,
The FrontDash Team"""
    return EmailMessage(to=restaurant.email, subject=APPROVED_SUBJECT, body=body)


class RestaurantNotifier:
    def __init__(self, sender: EmailSender, login_url: str):
        self.sender = sender
        self.login_url = login_url

    async def registration_received(self, restaurant: Restaurant) -> None:
        await self.sender.send(registration_received_email(restaurant))
        logger.info("Pending approval email sent", extra={"restaurant_id": restaurant.id})

    async def approved(self, restaurant: Restaurant, username: str, temporary_password: str) -> None:
        await self.sender.send(approval_email(restaurant, username, temporary_password, self.login_url))
        logger.info("Approval email sent", extra={"restaurant_id": restaurant.id})

    async def send(self, to: str, subject: str, body: str) -> None:
        await self.sender.send(EmailMessage(to=to, subject=subject, body=body))
