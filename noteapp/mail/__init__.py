"""Mail module for outbound email delivery."""

from noteapp.mail.mailer import Mailer, SmtpMailer

__all__ = ["Mailer", "SmtpMailer"]
