"""
Public contact form.
"""

from fastapi import APIRouter, status
from pydantic import BaseModel, EmailStr, Field

from .dependencies import MailerDependency

contact_app = APIRouter(tags=["Contact"])


class ContactRequest(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    email: EmailStr
    message: str = Field(min_length=1, max_length=4096)


@contact_app.post(
    "",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Send a message to the site team",
    responses={
        202: {"description": "Message sent."},
        400: {"description": "Invalid input data."},
        502: {"description": "Message could not be delivered."},
    },
)
async def contact_us(content: ContactRequest, mailer: MailerDependency) -> None:
    await mailer.send_contact_us(
        name=content.name, email=content.email, message=content.message
    )
