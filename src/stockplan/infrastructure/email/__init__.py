from stockplan.infrastructure.email.mailer_service import (
    ConsoleMailerService,
    MailerService,
    MailMessage,
    SmtpMailerService,
    create_mailer_service,
)

__all__ = [
    "ConsoleMailerService",
    "MailMessage",
    "MailerService",
    "SmtpMailerService",
    "create_mailer_service",
]
