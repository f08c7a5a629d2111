"""
Transactional email. Messages are rendered from the jinja templates in
`groupadmin/templates/mail` and delivered over SMTP.

Confirmation and password-reset mails never raise: a failed delivery is
logged and reported by returning False, so it cannot fail the request that
triggered it. Contact-us mails raise `MailDeliveryError`, as the sender is
waiting on the result.
"""

from email.message import EmailMessage
from pathlib import Path
from typing import Any

import aiosmtplib
from jinja2 import Environment, FileSystemLoader, select_autoescape
from structlog.typing import FilteringBoundLogger

from groupadmin.config.settings import Settings

TEMPLATE_DIRECTORY = Path(__file__).parent.parent / "templates" / "mail"


class MailDeliveryError(Exception):
    pass


class Mailer:
    def __init__(self, settings: Settings, log: FilteringBoundLogger):
        self.settings = settings
        self.log = log
        self.environment = Environment(
            loader=FileSystemLoader(TEMPLATE_DIRECTORY),
            autoescape=select_autoescape(["html"]),
        )

    def render(self, template: str, context: dict[str, Any]) -> str:
        return self.environment.get_template(f"{template}.html").render(
            site_name=self.settings.site_name, **context
        )

    def build_message(
        self, send_to: str, subject: str, template: str, context: dict[str, Any]
    ) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = f"{self.settings.mail_from_name} <{self.settings.mail_from}>"
        message["To"] = send_to
        message.set_content(self.render(template, context), subtype="html")
        return message

    async def send(self, message: EmailMessage, log: FilteringBoundLogger):
        """
        Deliver `message`.

        Raises
        ------
        MailDeliveryError
            If the SMTP server could not be reached or refused the message.
        """
        if not self.settings.mail_enabled:
            await log.ainfo("mail.disabled")
            return

        try:
            await aiosmtplib.send(
                message,
                hostname=self.settings.smtp_host,
                port=self.settings.smtp_port,
                username=self.settings.smtp_user,
                password=self.settings.smtp_password,
                start_tls=self.settings.smtp_start_tls,
                timeout=self.settings.smtp_timeout,
            )
        except (aiosmtplib.SMTPException, TimeoutError, OSError) as e:
            raise MailDeliveryError(f"Could not deliver mail: {e}") from e

        await log.ainfo("mail.sent")

    async def send_code_confirmation(
        self, user_name: str, send_to: str, verify_code: int
    ) -> bool:
        log = self.log.bind(mail="code_confirmation", user_name=user_name, send_to=send_to)

        message = self.build_message(
            send_to=send_to,
            subject=f"Welcome to {self.settings.site_name}! Confirm your Email",
            template="code_confirmation",
            context={"name": user_name, "code": verify_code},
        )

        try:
            await self.send(message, log)
        except MailDeliveryError:
            await log.aexception("mail.failed")
            return False

        return True

    async def send_forget_password(
        self, user_name: str, send_to: str, reset_url: str
    ) -> bool:
        log = self.log.bind(
            mail="forget_password", user_name=user_name, send_to=send_to, url=reset_url
        )

        message = self.build_message(
            send_to=send_to,
            subject=f"{self.settings.site_name} Reset Password!",
            template="forget_password",
            context={"name": user_name, "url": reset_url},
        )

        try:
            await self.send(message, log)
        except MailDeliveryError:
            await log.aexception("mail.failed")
            return False

        return True

    async def send_contact_us(self, name: str, email: str, message: str):
        """
        Forward a contact form submission to the site's own address.

        Raises
        ------
        MailDeliveryError
            If the mail could not be delivered.
        """
        log = self.log.bind(mail="contact_us", name=name, email=email)

        mail = self.build_message(
            send_to=self.settings.mail_from,
            subject=f"From {name} ContactUs of Site",
            template="contact_us",
            context={"name": name, "email": email, "message": message},
        )

        await self.send(mail, log)
