import logging

from fyphub.core.config import settings

logger = logging.getLogger(__name__)


def send_email(user_email: str, subject: str, message: str) -> bool:
    """
    Отправляет уведомление по email.
    Вне production письмо только логируется.
    """
    logger.info(f"Sending notification to {user_email}: {subject}")

    if settings.ENVIRONMENT != "production":
        logger.info(f"Email content: {message}")
        return False

    # TODO: подключить SMTP-провайдера, когда появятся учетные данные для production
    logger.info(f"Would send email to {user_email} with subject '{subject}'")
    return True
